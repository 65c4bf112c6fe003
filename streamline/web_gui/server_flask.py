"""
To serve with uwsgi:

uwsgi --http 0.0.0.0:8012 --manage-script-name --mount /=streamline.web_gui.server_flask:app

To serve with python:

python -m streamline.web_gui.server_flask 8012

Every method in :mod:`.api` is available as /RPC2/<method> and /<method>.
Arguments are the query string for GET or a JSON object body for POST.
Results are msgpack unless the request asks for application/json.
"""
import sys
import posixpath
import traceback
import logging
import json

from flask import Flask, request, make_response, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import msgpack as msgpack_converter

RETURN_TYPES = ["application/json", "application/msgpack"]


def create_app(config=None, editor=None):
    """
    Build the flask app and start the editor session behind it.

    *editor* replaces the session started from *config*, for testing.
    """
    from streamline.web_gui import api

    RPC_ENDPOINT = '/RPC2'
    SHOW_EXCEPTIONS = False
    if hasattr(config, 'get'):
        SHOW_EXCEPTIONS = config.get('show_exceptions', False)

    app = Flask(__name__)
    CORS(app)

    @app.route('/')
    def root():
        return jsonify(methods=sorted(api.api_methods))

    @app.errorhandler(Exception)
    def handle_error(e):
        code = 500
        if isinstance(e, HTTPException):
            code = e.code
        if SHOW_EXCEPTIONS:
            content = {'exception': repr(e), 'traceback': traceback.format_exc()}
        else:
            content = {'exception': 'API exception', 'traceback': ''}
        logging.info(traceback.format_exc())
        response = make_response(msgpack_converter.packb(content, use_bin_type=True), code)
        response.headers['Content-Type'] = "application/msgpack"
        return response

    def wrap_method(mfunc):
        def wrapper(*args, **kwargs):
            if request.method == "GET":
                real_kwargs = request.args.to_dict()
            else:
                real_kwargs = request.get_json() if request.get_data() else {}
            return_type = request.headers.get("Accept", "application/msgpack")
            if return_type not in RETURN_TYPES:
                # fall back to application/json for debugging GET requests
                return_type = "application/json"
            content = mfunc(*args, **real_kwargs)
            if return_type == "application/msgpack":
                packed = msgpack_converter.packb(content, use_bin_type=True)
            else:
                packed = json.dumps(content)

            response = make_response(packed)
            response.headers['Content-Type'] = return_type
            return response
        return wrapper

    api.initialize(config, editor=editor)

    for method in api.api_methods:
        mfunc = getattr(api, method)
        wrapped = wrap_method(mfunc)
        path = posixpath.join(RPC_ENDPOINT, method)
        shortpath = posixpath.join("/", method)
        app.add_url_rule(path, path, wrapped, methods=["POST", "GET"])
        app.add_url_rule(shortpath, shortpath, wrapped, methods=["POST", "GET"])

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    port = 8012
    if len(sys.argv) > 1:
        port = int(sys.argv[1])
    app = create_app()
    app.run(port=port)
