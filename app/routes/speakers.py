"""
Speakers Routes - public reads, authenticated writes
"""

from flask import Blueprint
from flask_login import login_required

from api_responses import data_response, handle_api_errors, json_object_body, success_response
from dependencies import get_speakers_repository

speakers_bp = Blueprint("speakers", __name__, url_prefix="/api")


@speakers_bp.route("/speakers")
@handle_api_errors
def list_speakers():
    return data_response(get_speakers_repository().list())


@speakers_bp.route("/speakers/<int:speaker_id>")
@handle_api_errors
def get_speaker(speaker_id):
    return data_response(get_speakers_repository().get(speaker_id))


@speakers_bp.route("/speakers", methods=["POST"])
@login_required
@handle_api_errors
def create_speaker():
    """Any id in the body is replaced by the assigned one"""
    speaker = get_speakers_repository().create(json_object_body())
    return data_response(speaker, status_code=201)


@speakers_bp.route("/speakers/<int:speaker_id>", methods=["PUT"])
@login_required
@handle_api_errors
def update_speaker(speaker_id):
    speaker = get_speakers_repository().update(speaker_id, json_object_body())
    return data_response(speaker)


@speakers_bp.route("/speakers/<int:speaker_id>", methods=["DELETE"])
@login_required
@handle_api_errors
def delete_speaker(speaker_id):
    get_speakers_repository().delete(speaker_id)
    return success_response(message="Deleted")
