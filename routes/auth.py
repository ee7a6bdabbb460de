"""Authentication blueprint: signup, email verification, login and session."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import current_user, jwt_required

from errors import NotFoundError, ValidationError
from services.auth_service import AuthService
from utils.request_validation import parse_json_request

auth_bp = Blueprint("auth", __name__)


def _service() -> AuthService:
    return current_app.extensions["uninest.auth"]


@auth_bp.route("/signup", methods=["POST"])
def signup() -> tuple:
    """Register an unverified account and email it a verification code."""
    payload = parse_json_request(request)
    message = _service().signup(
        payload.get("name"),
        payload.get("email"),
        payload.get("password"),
        payload.get("role"),
    )
    return jsonify({"message": message}), HTTPStatus.CREATED


@auth_bp.route("/verify", methods=["POST"])
def verify() -> tuple:
    """Exchange the emailed code for a verified account and a session token."""
    payload = parse_json_request(request)
    try:
        account, token = _service().verify_otp(payload.get("email"), payload.get("otp"))
    except NotFoundError as exc:
        raise ValidationError(exc.description) from exc
    return jsonify({"user": account.to_dict(), "token": token}), HTTPStatus.OK


@auth_bp.route("/resend", methods=["POST"])
def resend() -> tuple:
    """Issue a fresh verification code for a pending account."""
    payload = parse_json_request(request)
    try:
        message = _service().resend_otp(payload.get("email"))
    except NotFoundError as exc:
        raise ValidationError(exc.description) from exc
    return jsonify({"message": message}), HTTPStatus.OK


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a verified account and return a session token."""
    payload = parse_json_request(request)
    account, token = _service().login(payload.get("email"), payload.get("password"))
    return jsonify({"user": account.to_dict(), "token": token}), HTTPStatus.OK


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me() -> tuple:
    """Return the account behind the bearer token, re-read from the store."""
    return jsonify({"user": current_user.to_dict()}), HTTPStatus.OK
