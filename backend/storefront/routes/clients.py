# Overview: Flask API routes for the client registry (customers who ordered + manual contacts).

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_owner
from ..errors import StorefrontError, error_response
from ..services import client_service


clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
@require_owner
def list_clients_route():
    """Query: q (optional) - case-insensitive name or phone search."""
    try:
        clients = client_service.list_clients(g.session_context, request.args.get("q"))
        return jsonify({"items": [c.to_dict() for c in clients], "count": len(clients)}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list clients")
        return jsonify({"error": "Internal server error"}), 500


@clients_bp.post("")
@require_auth
@require_owner
def create_client_route():
    try:
        data = request.get_json(silent=True) or {}
        client = client_service.create_contact(g.session_context, data.get("name"), data.get("phone"))
        return jsonify({"client": client.to_dict()}), 201
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create client")
        return jsonify({"error": "Internal server error"}), 500


@clients_bp.put("/<origin>/<int:key>")
@require_auth
@require_owner
def update_client_route(origin: str, key: int):
    """
    origin is `manual` or `logged_in`. Editing a logged-in customer who never
    ordered from this company answers 403.
    """
    try:
        data = request.get_json(silent=True) or {}
        client = client_service.update_client(
            g.session_context, origin, key, data.get("name"), data.get("phone")
        )
        return jsonify({"client": client.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update client")
        return jsonify({"error": "Internal server error"}), 500


@clients_bp.delete("/manual/<int:contact_id>")
@require_auth
@require_owner
def delete_client_route(contact_id: int):
    try:
        client_service.delete_contact(g.session_context, contact_id)
        return jsonify({"deleted": True}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete client")
        return jsonify({"error": "Internal server error"}), 500
