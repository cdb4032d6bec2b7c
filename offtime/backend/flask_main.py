"""
Main Flask application - Controller layer.
Handles routes, request parsing, and delegates to the leave service layer.
"""
import os
import logging
from dotenv import load_dotenv
from datetime import date
from flask import Flask, request, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS

# Import our service layers
import db_service
import holiday_service
import leave_service

load_dotenv()

# Logging (stdlib only)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
logger = logging.getLogger(__name__)

# Configuration
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3001")
PORT = int(os.getenv("FLASK_MAIN_PORT", "5000"))

# Custom JSON encoder to handle date objects
class CustomJSONProvider(DefaultJSONProvider):
    def default(self, obj):
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)

app = Flask(__name__)
app.json = CustomJSONProvider(app)

# Enable CORS for the frontend only
CORS(app,
     resources={r"/*": {"origins": FRONTEND_URL}},
     allow_headers=["Content-Type"],
     expose_headers=["Content-Type"])

# Initialize the data store on startup
db_service.init_db()


def error_response(e: ValueError):
    """Map service validation errors to 404/400"""
    status = 404 if "not found" in str(e).lower() else 400
    return jsonify({"error": str(e)}), status


# ==================== API ENDPOINTS ====================

@app.route("/")
def root():
    return jsonify({"message": "Offtime Leave API"})

@app.route("/leave-options")
def leave_options():
    """Labels and display order for statuses, types, days and months"""
    return jsonify(leave_service.get_leave_options())

# ==================== USER ENDPOINTS ====================

@app.route("/users")
def list_users():
    """List all users"""
    return jsonify(leave_service.get_users())

@app.route("/users", methods=["POST"])
def create_user():
    """Register a new user profile"""
    body = request.get_json(silent=True) or {}
    try:
        user = leave_service.create_user(body.get("profile", {}))
        return jsonify(user), 201
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>")
def get_user(user_id):
    """Get a single user"""
    try:
        return jsonify(leave_service.get_user(user_id))
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>", methods=["PATCH"])
def update_user(user_id):
    """Update a user's profile and/or legacy allowance"""
    body = request.get_json(silent=True) or {}
    try:
        return jsonify(leave_service.update_user_profile(user_id, body))
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>/allowance", methods=["POST"])
def set_allowance(user_id):
    """Add or update a year's allowance"""
    body = request.get_json(silent=True) or {}
    try:
        return jsonify(leave_service.set_year_allowance(user_id, body))
    except ValueError as e:
        return error_response(e)

# ==================== ENTRY ENDPOINTS ====================

@app.route("/users/<user_id>/entries")
def list_entries(user_id):
    """Get a user's leave entries"""
    try:
        return jsonify(leave_service.get_entries(user_id))
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>/entries", methods=["POST"])
def create_entry(user_id):
    """Create a leave entry"""
    body = request.get_json(silent=True) or {}
    try:
        return jsonify(leave_service.create_entry(user_id, body)), 201
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>/entries/<entry_id>", methods=["PATCH"])
def update_entry(user_id, entry_id):
    """Update a leave entry"""
    body = request.get_json(silent=True) or {}
    try:
        return jsonify(leave_service.update_entry(user_id, entry_id, body))
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>/entries/<entry_id>", methods=["DELETE"])
def delete_entry(user_id, entry_id):
    """Delete a leave entry"""
    try:
        leave_service.delete_entry(user_id, entry_id)
        return "", 204
    except ValueError as e:
        return error_response(e)

# ==================== SUMMARY ENDPOINTS ====================

@app.route("/users/<user_id>/summary")
def get_summary(user_id):
    """Leave summary for the current holiday year (as_of overrides today)"""
    try:
        as_of = request.args.get("as_of")
        today = date.fromisoformat(as_of) if as_of else None
        return jsonify(leave_service.get_leave_summary(user_id, today))
    except ValueError as e:
        return error_response(e)

@app.route("/users/<user_id>/calendar")
def get_calendar(user_id):
    """Month view for a user"""
    today = date.today()
    year = request.args.get("year", default=today.year, type=int)
    month = request.args.get("month", default=today.month, type=int)
    try:
        return jsonify(leave_service.build_month_calendar(user_id, year, month))
    except ValueError as e:
        return error_response(e)

# ==================== HOLIDAY ENDPOINTS ====================

@app.route("/holidays")
def get_holidays():
    """Bank holiday dates as ISO strings"""
    return jsonify(holiday_service.get_bank_holidays())

@app.route("/entries/calculate-days", methods=["POST"])
def calculate_days():
    """Calculate working days between two dates"""
    body = request.get_json(silent=True) or {}
    try:
        result = leave_service.calculate_working_days_between(
            body.get("startDate"),
            body.get("endDate"),
            body.get("nonWorkingDays")
        )
        return jsonify(result)
    except ValueError as e:
        return error_response(e)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=PORT, debug=True)
