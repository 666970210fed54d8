# sitequote/blueprints/utils.py
import json

from flask import request

# form posts carry these as a JSON-encoded string next to the uploaded files
JSON_FORM_FIELDS = ("brands", "steel_details")


def request_data() -> dict:
    """JSON body, or form fields for multipart/form posts."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    data = request.form.to_dict()
    # repeated form keys (photos=...&photos=...) stay lists
    for key in ("photos", "ids", "steel_brands"):
        if key in request.form:
            data[key] = request.form.getlist(key)
    for key in JSON_FORM_FIELDS:
        if key in data:
            try:
                data[key] = json.loads(data[key])
            except ValueError:
                pass  # left as a string; the service rejects it by field
    return data


def uploaded_files(name: str = "photos") -> list:
    return [f for f in request.files.getlist(name) if f and f.filename]
