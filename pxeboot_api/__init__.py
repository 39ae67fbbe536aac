"""PXEBoot API: per-host boot configuration service.

Companion to ``pxe_bootstrap``:
- POST /generate-config writes PXELinux, iPXE and dnsmasq files keyed by MAC
- GET /list-isos reports the ISOs provisioned under the ISO directory

It shares the provisioning config file and templates, and keeps no state.
"""

from __future__ import annotations

__all__ = []
