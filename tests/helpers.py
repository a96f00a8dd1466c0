import json
from datetime import datetime, timedelta

import requests


def make_response(status_code=200, body=None, reason=None, content=None, url="http://api.test/api"):
    """Build a real ``requests.Response`` for client tests"""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason or ("OK" if status_code < 400 else "Error")
    response.url = url
    if content is not None:
        response._content = content
    else:
        response._content = json.dumps(body).encode() if body is not None else b""
    return response


def past(**delta):
    return datetime.utcnow() - timedelta(**delta)


def future(**delta):
    return datetime.utcnow() + timedelta(**delta)
