"""
Profile Routes
Profile pictures and generated avatars
"""
from flask import Blueprint, jsonify, request

from studyhall.services import AvatarService
from studyhall.services.avatar_service import color_for_username, initials

profile_bp = Blueprint('profile', __name__)


@profile_bp.route('/<username>/photo', methods=['PUT'])
def set_photo(username):
    data = request.get_json(silent=True) or {}
    profile = AvatarService.set_photo(username, data.get('photoUrl'))
    return jsonify(profile.to_dict())


@profile_bp.route('/<username>/avatar', methods=['GET'])
def get_avatar(username):
    return jsonify({
        'username': username,
        'avatarUrl': AvatarService.avatar_url(username),
        'color': color_for_username(username),
        'initials': initials(username),
    })
