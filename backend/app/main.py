from flask import Blueprint, jsonify
from app.services.games.registry import get_registry

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the color recall game server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'sessions': len(get_registry())})
