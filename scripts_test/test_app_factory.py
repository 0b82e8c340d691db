"""Smoke tests for the application factory."""
from backend.app import create_app, db
from backend.app.config import TestingConfig


def test_create_app_registers_favorites_routes():
    app = create_app(TestingConfig)
    rules = {(rule.rule, method) for rule in app.url_map.iter_rules() for method in rule.methods}
    assert ('/api/favorites/', 'GET') in rules
    assert ('/api/favorites/', 'POST') in rules
    assert ('/api/favorites/<campsite_id>', 'DELETE') in rules
    assert ('/api/favorites/<campsite_id>', 'PUT') in rules


def test_health_reports_degraded_database(monkeypatch):
    monkeypatch.setattr(db, 'health_check', lambda: {'status': 'unhealthy', 'error': 'down'})
    app = create_app(TestingConfig)
    response = app.test_client().get('/api/health')
    body = response.get_json()
    assert response.status_code == 200
    assert body['status'] == 'degraded'
    assert body['database']['status'] == 'unhealthy'
    assert response.headers['Access-Control-Allow-Origin'] == '*'
