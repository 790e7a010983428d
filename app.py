"""Flask web application for Faith Finder."""

import logging
import os
from functools import wraps

from flask import Flask, jsonify, request, session
from flask_cors import CORS

from config import ADMIN_EMAIL, ADMIN_IMPORT_KEY, ADMIN_PASSWORD, LOG_LEVEL, SECRET_KEY
from faith_finder.auth import (
    bearer_token,
    check_admin_key,
    check_credentials,
    is_admin_email,
    issue_token,
    verify_token,
)
from faith_finder.errors import FaithFinderError, Forbidden, InvalidInput, Unauthorized
from faith_finder.services import MatchingService
from faith_finder.services.admin_jobs import ADMIN_KEY_HEADER, JobName
from faith_finder.services.directory_service import default_directory
from faith_finder.services.import_service import ImportService

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['SECRET_KEY'] = SECRET_KEY
app.config['MAX_CONTENT_LENGTH'] = 4 * 1024 * 1024  # church lists stay small

CORS(app, resources={
    r"/*": {
        "origins": "*",
        "send_wildcard": True,
        "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        "allow_headers": [
            "authorization",
            "x-client-info",
            "apikey",
            "content-type",
            ADMIN_KEY_HEADER,
        ],
    }
})


def get_directory():
    """Directory used by the routes (tests swap it via app.config)."""
    if 'DIRECTORY' not in app.config:
        app.config['DIRECTORY'] = default_directory()
    return app.config['DIRECTORY']


def get_matching_service():
    if 'MATCHING_SERVICE' not in app.config:
        app.config['MATCHING_SERVICE'] = MatchingService()
    return app.config['MATCHING_SERVICE']


def json_body():
    """Decoded JSON object body; an empty body is an empty object."""
    if not request.get_data():
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput("Invalid input: body must be a JSON object.")
    return data


def current_admin_email():
    token = bearer_token(request.headers.get('Authorization'))
    if token:
        return verify_token(token, secret_key=app.config['SECRET_KEY'])
    return session.get('admin_email')


def admin_required(f):
    """Decorator to require the configured admin identity."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        email = current_admin_email()
        if not email:
            raise Unauthorized()
        if not is_admin_email(email, app.config.get('ADMIN_EMAIL', ADMIN_EMAIL)):
            raise Forbidden(f"Only {app.config.get('ADMIN_EMAIL', ADMIN_EMAIL)} can access admin tools.")
        return f(*args, **kwargs)
    return decorated_function


@app.errorhandler(FaithFinderError)
def handle_app_error(error):
    if error.status_code >= 500:
        logger.error("%s: %s", type(error).__name__, error.message)
    return jsonify(error.to_dict()), error.status_code


@app.route('/functions/v1/match-church', methods=['POST'])
def match_church():
    """Pick the best church and runner-ups from the submitted list."""
    selection = get_matching_service().handle_request(json_body())
    return jsonify(selection.to_dict())


@app.route('/functions/v1/<job>', methods=['POST'])
@admin_required
def run_job(job):
    """Run a directory maintenance job."""
    check_admin_key(
        request.headers.get(ADMIN_KEY_HEADER),
        app.config.get('ADMIN_IMPORT_KEY', ADMIN_IMPORT_KEY),
    )
    try:
        job_name = JobName(job)
    except ValueError:
        return jsonify({'error': f'Unknown job: {job}'}), 404

    if job_name is not JobName.IMPORT_CHURCHES:
        return jsonify({'error': 'Job not available on this deployment'}), 501

    result = ImportService(get_directory()).run()
    logger.info("Import finished: %s", result)
    return jsonify(result)


@app.route('/api/auth/login', methods=['POST'])
def login():
    """Sign in as the admin; returns a bearer token and sets the session."""
    data = json_body()
    email = data.get('email')
    email = check_credentials(
        email.strip() if isinstance(email, str) else '',
        data.get('password'),
        admin_email=app.config.get('ADMIN_EMAIL', ADMIN_EMAIL),
        admin_password=app.config.get('ADMIN_PASSWORD', ADMIN_PASSWORD),
    )
    session['admin_email'] = email
    session.permanent = True
    return jsonify({
        'success': True,
        'token': issue_token(email, secret_key=app.config['SECRET_KEY']),
    })


@app.route('/api/auth/logout', methods=['POST'])
def logout():
    session.pop('admin_email', None)
    return jsonify({'success': True})


@app.route('/api/churches', methods=['GET'])
def list_churches():
    """List churches, optionally narrowed to a location."""
    location = request.args.get('location') or None
    churches = get_directory().list(location=location)
    return jsonify({'churches': [c.to_dict() for c in churches]})


@app.route('/api/churches/<church_id>', methods=['GET'])
def get_church(church_id):
    return jsonify(get_directory().get(church_id).to_dict())


@app.route('/api/churches', methods=['POST'])
@admin_required
def add_church():
    church = get_directory().add(json_body())
    return jsonify(church.to_dict()), 201


@app.route('/api/churches/<church_id>', methods=['PATCH'])
@admin_required
def update_church(church_id):
    church = get_directory().update(church_id, json_body())
    return jsonify(church.to_dict())


@app.route('/api/churches/<church_id>', methods=['DELETE'])
@admin_required
def delete_church(church_id):
    get_directory().delete(church_id)
    return jsonify({'success': True, 'id': church_id})


if __name__ == '__main__':
    if not os.environ.get('OPENAI_API_KEY') and not os.environ.get('GEMINI_API_KEY'):
        logger.warning("Neither OPENAI_API_KEY nor GEMINI_API_KEY is set")

    port = int(os.environ.get('PORT', 5000))
    app.run(debug=False, host='0.0.0.0', port=port)
