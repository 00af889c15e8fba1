from urllib.parse import urlparse


def is_local_url(target) -> bool:
    """Only same-site absolute paths are followed after login / toggles."""
    if not target or not isinstance(target, str):
        return False
    if not target.startswith("/") or target.startswith("//"):
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc


def wants_json(request) -> bool:
    accept = request.headers.get("Accept", "") or ""
    return "application/json" in accept or request.headers.get("X-Requested-With") == "XMLHttpRequest"


def request_data(request):
    """JSON body when one was sent, else the form. None if the JSON is not an object."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else None
    return request.form
