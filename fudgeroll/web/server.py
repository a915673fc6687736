"""
Flask JSON API for Fudge Roll.

Endpoints:
    GET  /api/roll_types       Roll kinds a fudge request may ask for
    GET  /api/catalog          Skill and ability ids with labels
    POST /api/formula/range    Min and max of a formula
    POST /api/formula/seek     Seek a target on a formula
    POST /api/fudge            Fudge a check from a character sheet
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from fudgeroll.core.config import Config, get_config
from fudgeroll.core.result import ErrorCode, Result
from fudgeroll.modules.fudge import FudgeModule
from fudgeroll.modules.fudge.catalog import catalog_dict

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, module: Optional[FudgeModule] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        config: Configuration (defaults to the global config)
        module: FudgeModule to serve (defaults to one built from config)
    """
    config = config or get_config()
    app = Flask(__name__)
    app.config['DEBUG'] = config.debug
    app.extensions['fudge'] = module or FudgeModule.from_config(config)

    def get_module() -> FudgeModule:
        return app.extensions['fudge']

    def failure(result: Result, status: int = 400):
        return jsonify({
            'success': False,
            'error': result.error,
            'error_code': result.error_code
        }), status

    def json_body():
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else None

    def bindings_of(data):
        bindings = data.get('bindings')
        if bindings is None:
            return {}
        return bindings if isinstance(bindings, dict) else None

    @app.route('/api/roll_types')
    def api_roll_types():
        """JSON API: Get all roll types."""
        roll_types = [rt.to_dict() for rt in get_module().register_roll_types()]
        return jsonify({'roll_types': roll_types})

    @app.route('/api/catalog')
    def api_catalog():
        return jsonify(catalog_dict())

    @app.route('/api/formula/range', methods=['POST'])
    def api_formula_range():
        """
        JSON API: Min and max of a formula.

        Request JSON:
            {"formula": "1d20 + @mod", "bindings": {"mod": 5}}

        Returns:
            {"success": true, "result": {"formula": "...", "min": 6, "max": 25}}
        """
        data = json_body()
        if not data or not data.get('formula'):
            return failure(Result.fail('Missing required field: formula', ErrorCode.MISSING_REQUIRED_FIELD))

        bindings = bindings_of(data)
        if bindings is None:
            return failure(Result.fail('bindings must be an object', ErrorCode.INVALID_INPUT))

        result = get_module().formula_range(data['formula'], bindings)
        if not result:
            return failure(result)
        return jsonify({'success': True, 'result': result.data})

    @app.route('/api/formula/seek', methods=['POST'])
    def api_formula_seek():
        """
        JSON API: Roll a formula until it shows the target.

        Request JSON:
            {"formula": "1d20 + @mod", "bindings": {"mod": 5}, "target": 17}

        Returns:
            {"success": true, "result": {"total": 17, "attempts": 9, ...}}
        """
        data = json_body()
        if not data or not data.get('formula'):
            return failure(Result.fail('Missing required field: formula', ErrorCode.MISSING_REQUIRED_FIELD))

        bindings = bindings_of(data)
        if bindings is None:
            return failure(Result.fail('bindings must be an object', ErrorCode.INVALID_INPUT))

        result = get_module().seek_formula(data['formula'], bindings, data.get('target'))
        if not result:
            return failure(result)
        return jsonify({'success': True, 'result': result.data.to_dict()})

    @app.route('/api/fudge', methods=['POST'])
    def api_fudge():
        """
        JSON API: Fudge a check for a character.

        Request JSON:
            {
                "actor": { ...character sheet... },
                "request": {
                    "roll_type": "skill_check",
                    "skill": "ste",
                    "target": 18,
                    "advantage": "advantage"   # optional
                }
            }

        Returns:
            {"success": true, "result": {"flavor": "Stealth Skill Check (Advantage)", "total": 18, ...}}
        """
        data = json_body()
        if not data or 'actor' not in data or 'request' not in data:
            return failure(Result.fail('Missing required fields: actor, request', ErrorCode.MISSING_REQUIRED_FIELD))
        if not isinstance(data['actor'], dict) or not isinstance(data['request'], dict):
            return failure(Result.fail('actor and request must be objects', ErrorCode.INVALID_INPUT))

        result = get_module().fudge_json(data['request'], data['actor'])
        if not result:
            return failure(result)
        return jsonify({'success': True, 'result': result.data.to_dict()})

    return app
