# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockbill/routes/auth.py
"""
Authentication API routes

- Registration creates staff accounts (admins are created via the CLI)
- Login returns a bearer token for the Authorization header
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..extensions import db
from ..schemas import LoginPayload, RegisterPayload
from ..services import auth_service, session_service
from ..validation import ValidationError, ConflictError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status: int):
    session, token = session_service.create_session(
        db.session,
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
    }), status


@auth_bp.post("/register")
def register_route():
    try:
        payload = RegisterPayload.from_json(request.get_json(silent=True))
        user = auth_service.create_user(
            db.session,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            bcrypt_rounds=current_app.config.get("BCRYPT_ROUNDS", 12),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return _session_response(user, 201)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        payload = LoginPayload.from_json(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        user = auth_service.authenticate(db.session, payload.email, payload.password)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    if not user:
        return jsonify({"error": "Invalid credentials"}), 401

    return _session_response(user, 200)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(db.session, g.session_token)
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
