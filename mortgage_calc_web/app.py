import logging
import os
from uuid import uuid4

from flask import Flask, Response, jsonify, request, session

from mortgage_calc.engine import calculate, ledger_dicts, schedule_dicts, summary_dict
from mortgage_calc.snapshot import (
    EVENTS_KEY,
    INVESTMENTS_KEY,
    MORTGAGE_KEY,
    RECORD_KEYS,
    SnapshotError,
    build_export,
    config_from_dict,
    dumps_export,
    events_from_list,
    export_filename,
    parse_import,
)
from mortgage_calc_web.state_store import create_store_from_env

logging.basicConfig(level=os.environ.get("MORTGAGE_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
state_store = create_store_from_env(os.environ.get("MORTGAGE_DATABASE_URL"))


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _error(message: str, status: int = 400):
    return jsonify({"success": False, "error": message}), status


def _run_analysis(mortgage_data, timeline_events) -> dict:
    config = config_from_dict(mortgage_data)
    events = events_from_list(timeline_events)
    result = calculate(config, events)
    return {
        "summary": summary_dict(result),
        "schedule": schedule_dicts(result),
        "transactions": ledger_dicts(result.ledger),
    }


@app.get("/api/state")
def get_state():
    user_token = _ensure_user_token()
    return jsonify(state_store.load_all(user_token))


@app.put("/api/state/<key>")
def put_state(key: str):
    if key not in RECORD_KEYS:
        return _error(f"Unknown record {key}", 404)
    user_token = _ensure_user_token()
    payload = request.get_json(silent=True)
    if key == MORTGAGE_KEY and not isinstance(payload, dict):
        return _error("mortgageData must be a JSON object")
    if key in (EVENTS_KEY, INVESTMENTS_KEY) and not isinstance(payload, list):
        return _error(f"{key} must be a JSON array")
    state_store.save(user_token, key, payload)
    return jsonify({"success": True})


@app.post("/api/calculate")
def calculate_route():
    user_token = _ensure_user_token()
    body = request.get_json(silent=True) or {}
    mortgage_data = body.get(MORTGAGE_KEY)
    timeline_events = body.get(EVENTS_KEY)
    if mortgage_data is None:
        mortgage_data = state_store.load(user_token, MORTGAGE_KEY)
    if timeline_events is None:
        timeline_events = state_store.load(user_token, EVENTS_KEY, [])
    if not mortgage_data:
        return _error("No mortgage data to calculate")
    try:
        return jsonify(_run_analysis(mortgage_data, timeline_events))
    except ValueError as exc:
        return _error(str(exc))


@app.get("/api/export")
def export_state():
    user_token = _ensure_user_token()
    records = state_store.load_all(user_token)
    document = build_export(records[MORTGAGE_KEY], records[EVENTS_KEY], records[INVESTMENTS_KEY])
    return Response(
        dumps_export(document),
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
    )


@app.post("/api/import")
def import_state():
    user_token = _ensure_user_token()
    upload = request.files.get("file")
    text = upload.read().decode("utf-8", errors="replace") if upload else request.get_data(as_text=True)
    try:
        snapshot = parse_import(text)
    except SnapshotError as exc:
        logger.warning("Rejected import for user %s: %s", user_token, exc.detail)
        return _error(exc.message)
    state_store.replace_all(user_token, snapshot.records())
    return jsonify({"success": True, "message": "Data imported successfully!", "data": snapshot.records()})


@app.post("/api/clear")
def clear_state():
    user_token = _ensure_user_token()
    state_store.clear(user_token)
    return jsonify({"success": True})


if __name__ == "__main__":
    print("Starting Mortgage Calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
