from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request

from pxe_bootstrap.config import Settings
from pxe_bootstrap.errors import RenderError

from .hosts import HostConfig, HostConfigError, generate_host_configs
from .isos import list_isos

logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"status": "error", "message": message}), status


def create_app(settings: Optional[Settings] = None) -> Flask:
    app = Flask(__name__)
    app.config["PXE_SETTINGS"] = settings or Settings()

    @app.post("/generate-config")
    def generate_config():
        settings: Settings = app.config["PXE_SETTINGS"]
        logger.info("Received generate-config request from %s", request.remote_addr)

        data = request.get_json(silent=True)
        if data is None:
            logger.error("Failed to decode JSON from %s", request.remote_addr)
            return _error("Invalid JSON", 400)

        try:
            host = HostConfig.from_json(data)
        except HostConfigError as e:
            logger.error("Invalid host config from %s: %s", request.remote_addr, e)
            return _error(str(e), 400)

        logger.info("Processing configuration for host: %s (MAC: %s)", host.hostname, host.mac_address)

        try:
            host.check_required_files(settings)
        except FileNotFoundError as e:
            logger.error("Required file check failed for host %s: %s", host.hostname, e)
            return _error(str(e), 404)

        try:
            files = generate_host_configs(host, settings)
        except RenderError as e:
            logger.error("Failed to generate configuration for host %s: %s", host.hostname, e)
            return _error(f"Error generating configuration: {e}", 500)

        logger.info("Configuration generated successfully for host: %s", host.hostname)
        return jsonify(
            {
                "status": "success",
                "message": "Configuration files generated successfully",
                "files": files,
            }
        )

    @app.get("/list-isos")
    def list_available_isos():
        settings: Settings = app.config["PXE_SETTINGS"]
        logger.info("Received list-isos request from %s", request.remote_addr)

        try:
            isos = list_isos(settings.iso_dir)
        except OSError as e:
            logger.error("Failed to read ISO directory: %s", e)
            return _error(f"Error reading ISO directory: {e}", 500)

        logger.info("Found %d ISO files", len(isos))
        return jsonify({"status": "success", "isos": [i.to_dict() for i in isos]})

    return app
