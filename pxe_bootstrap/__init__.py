"""PXE boot provisioning (Python-first, filesystem-driven).

Core design goals:
- One bounded target list per invocation, processed in declared order
- Idempotent stages: existing downloads and mounts are reused
- Guaranteed unmount of anything this run mounted
- Boot menus always rendered from the full, successfully processed list
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
