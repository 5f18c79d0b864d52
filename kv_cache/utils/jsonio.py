import json
from pathlib import Path


# Read a JSON document.
def read_json(path):
    path = Path(path)
    return json.loads(path.read_text(encoding="utf-8"))


# Write a JSON object. Serialization happens before the file is opened,
# so an unserializable value leaves any existing file untouched.
def write_json(path, obj):
    path = Path(path)
    text = json.dumps(obj, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
