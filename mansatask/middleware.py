import uuid

from flask import g, request

REQUEST_ID_HEADER = "X-Request-ID"


def init_request_id_middleware(app):
    """
    Attach a unique correlation ID to every request and echo it back.
    """

    @app.before_request
    def assign_request_id():
        incoming = request.headers.get(REQUEST_ID_HEADER)
        g.request_id = incoming or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        response.headers[REQUEST_ID_HEADER] = g.get("request_id", "")
        return response
