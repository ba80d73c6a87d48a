# app.py: calendar assistant API

import logging
from datetime import datetime as _dt

from flask import Flask, request, jsonify
from flask_cors import CORS
from pydantic import ValidationError

from config import get_settings
from logging_config import setup_logging
from query_engine import answer_query
from schemas import QueryRequest

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = Flask(__name__)
    CORS(app, origins=settings.CORS_ORIGINS)

    @app.get('/health')
    def health():
        return jsonify({'ok': True, 'service': 'calendar-assistant', 'time': _dt.now().isoformat()})

    @app.get('/')
    def root():
        return jsonify({'status': 'running'})

    @app.errorhandler(400)
    def handle_400(err):
        return jsonify({'error': 'Bad Request', 'details': str(err)}), 400

    @app.route('/api/ai/query', methods=['POST', 'OPTIONS'])
    def ai_query():
        if request.method == 'OPTIONS':
            return ('', 204)
        try:
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                data = {}

            query = data.get('query')
            if not query or not isinstance(query, str):
                return jsonify({'error': 'Query is required'}), 400

            raw_events = data.get('events')
            if raw_events is None or not isinstance(raw_events, list):
                return jsonify({'error': 'Events data is required'}), 400

            try:
                req = QueryRequest.model_validate({'query': query, 'events': raw_events})
            except ValidationError as e:
                return jsonify({'error': 'Invalid events', 'details': e.errors(include_url=False, include_context=False)}), 400

            logger.info("ai query events=%d", len(req.events))
            result = answer_query(req.query, req.events)
            return jsonify(result.to_payload())
        except Exception:
            logger.exception("Error processing AI query")
            return jsonify({'answer': 'Sorry, I encountered an error processing your query.'}), 500

    return app


app = create_app()


if __name__ == '__main__':
    settings = get_settings()
    app.run(host='0.0.0.0', port=settings.APP_PORT, debug=settings.APP_ENV == 'development')
