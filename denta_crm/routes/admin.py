from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from denta_crm.services import user_service, whitelist_service
from denta_crm.utils.decorators import get_current_email, require_admin


# Mounted twice: /api/admin/doctors and /api/admin/nurses (name="admin_nurses")
staff_bp = Blueprint("admin_doctors", __name__, url_prefix="/api/admin/doctors")
whitelist_bp = Blueprint("whitelist", __name__, url_prefix="/api/admin/whitelist")
users_bp = Blueprint("admin_users", __name__, url_prefix="/api/admin/users")
# Public directory: /api/doctors and /api/nurses (name="nurses")
directory_bp = Blueprint("doctors", __name__, url_prefix="/api/doctors")


def _is_doctors(blueprint_name):
    return request.blueprint == blueprint_name


def _list_staff(doctors):
    names = whitelist_service.list_doctors() if doctors else whitelist_service.list_nurses()
    return jsonify({"success": True, "data": names}), 200


# ========== PUBLIC DIRECTORY ==========

@directory_bp.route("", methods=["GET"])
def list_directory():
    """Doctor or nurse names for form dropdowns."""
    return _list_staff(_is_doctors("doctors"))


# ========== DOCTORS / NURSES ==========

@staff_bp.route("", methods=["GET"])
@jwt_required()
@require_admin
def list_staff():
    return _list_staff(_is_doctors("admin_doctors"))


@staff_bp.route("", methods=["POST"])
@jwt_required()
@require_admin
def add_staff():
    """Body: { name }"""
    data = request.get_json(silent=True) or {}
    name = data.get("name")

    if _is_doctors("admin_doctors"):
        name = whitelist_service.add_doctor(name)
    else:
        name = whitelist_service.add_nurse(name)

    current_app.logger.info("Added %s %r", request.blueprint, name)
    return jsonify({"success": True, "data": {"name": name}}), 201


@staff_bp.route("/<path:name>", methods=["DELETE"])
@jwt_required()
@require_admin
def delete_staff(name):
    if _is_doctors("admin_doctors"):
        whitelist_service.delete_doctor(name)
    else:
        whitelist_service.delete_nurse(name)

    return jsonify({"success": True, "message": f'"{name}" deleted'}), 200


# ========== WHITELIST ==========

@whitelist_bp.route("", methods=["GET"])
@jwt_required()
@require_admin
def list_whitelist():
    """Query params: provider (google, yandex or email)"""
    entries = whitelist_service.list_whitelist(request.args.get("provider") or None)
    return jsonify({"success": True, "data": [e.to_dict() for e in entries]}), 200


@whitelist_bp.route("", methods=["POST"])
@jwt_required()
@require_admin
def add_whitelist_email():
    """Body: { email, provider, doctors: [...], nurses: [...] }"""
    data = request.get_json(silent=True) or {}
    entry = whitelist_service.add_whitelist_email(
        data.get("email"),
        provider=data.get("provider") or "email",
        doctor_names=data.get("doctors"),
        nurse_names=data.get("nurses"),
    )
    return jsonify({"success": True, "data": entry.to_dict()}), 201


@whitelist_bp.route("/<email>", methods=["PUT"])
@jwt_required()
@require_admin
def update_whitelist_email(email):
    """Body: { doctors?: [...], nurses?: [...] } replaces the given lists."""
    data = request.get_json(silent=True) or {}
    entry = whitelist_service.update_whitelist_staff(
        email,
        doctor_names=data.get("doctors"),
        nurse_names=data.get("nurses"),
    )
    return jsonify({"success": True, "data": entry.to_dict()}), 200


@whitelist_bp.route("/<email>", methods=["DELETE"])
@jwt_required()
@require_admin
def delete_whitelist_email(email):
    whitelist_service.delete_whitelist_email(email)
    return jsonify({"success": True, "message": f"{email} removed from whitelist"}), 200


# ========== USERS ==========

@users_bp.route("", methods=["GET"])
@jwt_required()
@require_admin
def list_users():
    users = user_service.list_users()
    return jsonify({"success": True, "data": [u.to_dict() for u in users], "total": len(users)}), 200


@users_bp.route("/<email>", methods=["DELETE"])
@jwt_required()
@require_admin
def delete_user(email):
    user_service.delete_user(email, deleted_by_email=get_current_email())
    return jsonify({"success": True, "message": f"User {email} deleted"}), 200


@users_bp.route("/<email>/reset-password", methods=["POST"])
@jwt_required()
@require_admin
def reset_password(email):
    """Body: { new_password, confirm_password }"""
    data = request.get_json(silent=True) or {}
    user = user_service.reset_password(
        email,
        data.get("new_password"),
        data.get("confirm_password"),
    )
    return jsonify({"success": True, "data": user.to_dict(), "message": "Password reset"}), 200
