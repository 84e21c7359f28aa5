from flask import jsonify


def success_response(payload=None, message=None, status=200, warnings=None):
    resp = {"success": True}
    if payload is not None:
        resp.update(payload if isinstance(payload, dict) else {"data": payload})
    if message:
        resp["message"] = message
    # the operation went through but something advisory failed
    if warnings:
        resp["warnings"] = list(warnings)
    return jsonify(resp), status


def error_response(code, message, details=None, status=400):
    return jsonify({"error": {"code": code, "message": message, "details": details or {}}}), status


def service_error_response(exc):
    return error_response(exc.code, exc.message, details=exc.details, status=exc.status)
