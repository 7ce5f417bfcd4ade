from app.services.games.registry import get_registry
from app.services.games.session import SHOW_DURATION_SEC


def _new_game(client):
    res = client.post('/api/games/create')
    assert res.status_code == 201
    return res.get_json()['game_code']


def _started_game(client):
    code = _new_game(client)
    client.post(f'/api/games/{code}/start', json={'player1_name': 'Alice', 'player2_name': 'Bob'})
    return code


def test_create_game(client):
    res = client.post('/api/games/create')
    assert res.status_code == 201
    data = res.get_json()
    assert len(data['game_code']) == 4
    assert data['state'] == 'name_entry'
    assert data['round_index'] is None
    assert data['target'] is None


def test_state_unknown_game(client):
    res = client.get('/api/games/ZZZZ/state')
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_state_is_case_insensitive_and_reports_duration(client):
    code = _new_game(client)
    res = client.get(f'/api/games/{code.lower()}/state')
    assert res.status_code == 200
    data = res.get_json()
    assert data['game_code'] == code
    assert data['durations'] == {'showing': SHOW_DURATION_SEC}


def test_round_is_ignored_until_names_entered(client):
    code = _new_game(client)
    res = client.post(f'/api/games/{code}/rounds')
    assert res.status_code == 200
    assert res.get_json()['applied'] is False
    assert res.get_json()['state'] == 'name_entry'

    res = client.post(f'/api/games/{code}/start', json={'player1_name': 'Alice', 'player2_name': '  '})
    assert res.get_json()['applied'] is False
    assert res.get_json()['state'] == 'name_entry'

    res = client.post(f'/api/games/{code}/start', json={'player1_name': 'Alice', 'player2_name': 'Bob'})
    data = res.get_json()
    assert data['applied'] is True
    assert data['state'] == 'waiting'
    assert [p['name'] for p in data['players']] == ['Alice', 'Bob']


def test_start_requires_json_body(client):
    code = _new_game(client)
    res = client.post(f'/api/games/{code}/start')
    assert res.status_code == 400


def test_full_round_flow(client, timers):
    code = _started_game(client)

    shown = client.post(f'/api/games/{code}/rounds').get_json()
    assert shown['state'] == 'showing'
    assert shown['round_index'] == 0
    assert shown['fraction_remaining'] == 1.0
    target = shown['target']
    assert target.startswith('#') and len(target) == 7

    # guesses are not accepted while the target is on screen
    res = client.post(f'/api/games/{code}/guess', json={'player_id': 1, 'color': target})
    assert res.get_json()['applied'] is False

    timers.advance(SHOW_DURATION_SEC)
    picking = client.get(f'/api/games/{code}/state').get_json()
    assert picking['state'] == 'picking'
    assert picking['target'] is None

    res = client.post(f'/api/games/{code}/guess', json={'player_id': 1, 'color': target.upper()})
    assert res.get_json()['applied'] is True
    assert res.get_json()['players'][0]['guess'] == target

    results = client.post(f'/api/games/{code}/submit').get_json()
    assert results['state'] == 'results'
    assert results['target'] == target
    p1, p2 = results['players']
    assert p1['distance'] == 0
    if target == '#ffffff':
        assert p1['round_score'] == p2['round_score'] == 0.5
    else:
        assert p1['round_score'] == 6
        assert p2['round_score'] == 0
    assert p1['score'] == p1['round_score']

    nxt = client.post(f'/api/games/{code}/next').get_json()
    assert nxt['state'] == 'showing'
    assert nxt['round_index'] == 1
    assert nxt['players'][0]['round_score'] == 0
    assert nxt['players'][0]['score'] == p1['score']


def test_guess_validation(client, timers):
    code = _started_game(client)
    client.post(f'/api/games/{code}/rounds')
    timers.advance(SHOW_DURATION_SEC)

    res = client.post(f'/api/games/{code}/guess', json={'player_id': 3, 'color': '#000000'})
    assert res.status_code == 400
    res = client.post(f'/api/games/{code}/guess', json={'player_id': 1, 'color': 'blue'})
    assert res.status_code == 400
    assert 'error' in res.get_json()
    res = client.post(f'/api/games/{code}/guess', json=[1, '#000000'])
    assert res.status_code == 400
    res = client.post(f'/api/games/{code}/guess', json='#000000')
    assert res.status_code == 400
    res = client.post(f'/api/games/{code}/guess', data='not json', content_type='application/json')
    assert res.status_code == 400
    state = client.get(f'/api/games/{code}/state').get_json()
    assert state['players'][0]['guess'] == '#ffffff'


def test_submit_outside_picking_is_noop(client):
    code = _started_game(client)
    res = client.post(f'/api/games/{code}/submit')
    assert res.status_code == 200
    assert res.get_json()['applied'] is False
    assert res.get_json()['state'] == 'waiting'


def test_instructions_toggle(client):
    code = _started_game(client)
    data = client.post(f'/api/games/{code}/instructions').get_json()
    assert data['show_instructions'] is False
    data = client.post(f'/api/games/{code}/instructions').get_json()
    assert data['show_instructions'] is True
    data = client.post(f'/api/games/{code}/rounds').get_json()
    assert data['show_instructions'] is False


def test_delete_game_cancels_timer(client, timers):
    code = _started_game(client)
    client.post(f'/api/games/{code}/rounds')
    assert len(timers.live) == 1
    res = client.delete(f'/api/games/{code}')
    assert res.status_code == 200
    assert timers.live == []
    assert client.get(f'/api/games/{code}/state').status_code == 404
    assert client.delete(f'/api/games/{code}').status_code == 404


def test_debounce_blocks_repeat_of_applied_action(flask_app, client, timers):
    flask_app.config['CONTROLLER_DEBOUNCE_MS'] = 60000
    code = _started_game(client)
    client.post(f'/api/games/{code}/rounds')
    timers.advance(SHOW_DURATION_SEC)
    assert client.post(f'/api/games/{code}/submit').get_json()['applied'] is True
    client.post(f'/api/games/{code}/next')
    timers.advance(SHOW_DURATION_SEC)

    res = client.post(f'/api/games/{code}/submit')
    assert res.status_code == 200
    data = res.get_json()
    assert data['applied'] is False
    assert data['state'] == 'picking'


def test_ignored_action_does_not_start_debounce_window(flask_app, client):
    flask_app.config['CONTROLLER_DEBOUNCE_MS'] = 60000
    code = _new_game(client)
    assert client.post(f'/api/games/{code}/rounds').get_json()['applied'] is False
    client.post(f'/api/games/{code}/start', json={'player1_name': 'Alice', 'player2_name': 'Bob'})

    res = client.post(f'/api/games/{code}/rounds')
    assert res.status_code == 200
    assert res.get_json()['applied'] is True
    assert res.get_json()['state'] == 'showing'


def test_health_counts_sessions(client):
    _new_game(client)
    _new_game(client)
    data = client.get('/health').get_json()
    assert data['status'] == 'ok'
    assert data['sessions'] == len(get_registry()) == 2
