from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_caller, json_body
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/assistant/tools", methods=["GET"], endpoint="api_assistant_tools")
    def list_tools():
        return jsonify(container.tool_registry.definitions(current_caller()))

    @app.route("/api/assistant/tools/<name>", methods=["POST"], endpoint="api_assistant_dispatch")
    def dispatch(name: str):
        caller = current_caller()
        arguments = json_body().get("arguments") or {}
        if not isinstance(arguments, dict):
            raise ValidationError("arguments must be an object")
        return jsonify({"tool": name, "result": container.tool_registry.dispatch(caller, name, arguments)})
