from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_note_crud_flow():
    first = client.post('/notes', json={'email': 'n@x.com', 'title': 'One', 'description': 'a'})
    assert first.status_code == 201
    first_id = first.json()['insertedId']
    second_id = client.post('/notes', json={'email': 'n@x.com', 'title': 'Two'}).json()['insertedId']
    client.post('/notes', json={'email': 'someone@x.com', 'title': 'Else'})

    assert len(client.get('/notes', params={'email': 'n@x.com'}).json()) == 2

    r = client.patch(f'/notes/{first_id}', json={'title': 'One v2'})
    assert r.json()['modifiedCount'] == 1
    note = client.get(f'/notes/{first_id}').json()
    assert note['title'] == 'One v2'
    assert note['description'] == 'a'
    assert note['updatedAt']

    r = client.delete(f'/notes/{second_id}')
    assert r.json()['deletedCount'] == 1
    remaining = client.get('/notes', params={'email': 'n@x.com'}).json()
    assert [n['_id'] for n in remaining] == [first_id]
    assert client.get(f'/notes/{second_id}').status_code == 404


def test_delete_unknown_note_deletes_nothing():
    r = client.delete('/notes/0123456789abcdef01234567')
    assert r.status_code == 200
    assert r.json()['deletedCount'] == 0


def test_material_crud_scoped_by_session_and_tutor():
    payload = {
        'sessionId': 's1',
        'tutorEmail': 't@x.com',
        'title': 'Slides',
        'imageURL': 'http://img',
        'driveLink': 'http://drive',
    }
    material_id = client.post('/materials', json=payload).json()['insertedId']
    client.post('/materials', json={**payload, 'sessionId': 's2', 'tutorEmail': 'u@x.com'})

    assert len(client.get('/materials').json()) == 2
    assert len(client.get('/materials', params={'sessionId': 's1'}).json()) == 1
    assert len(client.get('/materials', params={'tutorEmail': 'u@x.com'}).json()) == 1

    r = client.patch(f'/materials/{material_id}', json={'driveLink': 'http://new'})
    assert r.json()['matchedCount'] == 1
    assert client.get(f'/materials/{material_id}').json()['driveLink'] == 'http://new'

    assert client.delete(f'/materials/{material_id}').json()['deletedCount'] == 1
    assert client.get('/materials', params={'sessionId': 's1'}).json() == []


def test_root_and_diagnostics():
    assert 'running' in client.get('/').json()['message']
    body = client.get('/test').json()
    assert body['backend'] == '✅ Running'
    assert body['database_name'] == 'learning-hub-test'
