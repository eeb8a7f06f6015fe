def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    # Join a room and expect a joined ack
    sio_client.emit('join_arena', {'arena_code': 'abcd'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined
    assert joined[-1]['args'][0]['room'] == 'arena:ABCD'


def test_join_requires_code(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_arena', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    pongs = [pkt for pkt in received if pkt['name'] == 'pong']
    assert pongs and pongs[0]['args'][0] == {'n': 1}


def test_room_receives_arena_updates(sio_client, client):
    code = client.post('/api/arenas/create', json={}).get_json()['arena_code']
    sio_client.emit('join_arena', {'arena_code': code}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post('/api/arenas/join', json={'arena_code': code, 'name': 'Alice'})
    events = sio_client.get_received('/ws')
    names = [e['name'] for e in events]
    assert 'state_update' in names
    messages = [e['args'][0]['message'] for e in events if e['name'] == 'phase_message']
    assert 'Alice joined (1/8)' in messages


def test_leave_room_stops_updates(sio_client, client):
    code = client.post('/api/arenas/create', json={}).get_json()['arena_code']
    sio_client.emit('join_arena', {'arena_code': code}, namespace='/ws')
    sio_client.emit('leave_arena', {'arena_code': code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'left' for pkt in received)

    client.post('/api/arenas/join', json={'arena_code': code, 'name': 'Bob'})
    assert not any(e['name'] == 'state_update' for e in sio_client.get_received('/ws'))
