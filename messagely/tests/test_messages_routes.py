import pytest

from .conftest import USERS, public


async def _token(client, user):
    res = await client.post('/auth/register', json=user)
    assert res.status_code == 200, res.text
    return {'Authorization': f"Bearer {res.json()['token']}"}


@pytest.mark.asyncio
async def test_message_flow_between_participants(client):
    alice, bob, carol = [await _token(client, u) for u in USERS]

    sent = await client.post('/messages', json={'to_username': 'bob', 'body': 'hi bob'}, headers=alice)
    assert sent.status_code == 200, sent.text
    message = sent.json()['message']
    assert message['from_username'] == 'alice'
    assert message['to_username'] == 'bob'
    assert message['body'] == 'hi bob'
    assert message['sent_at'] is not None
    msg_id = message['id']

    for headers in (alice, bob):
        res = await client.get(f'/messages/{msg_id}', headers=headers)
        assert res.status_code == 200
        detail = res.json()['message']
        assert detail['from_user'] == public(USERS[0])
        assert detail['to_user'] == public(USERS[1])
        assert detail['read_at'] is None

    assert (await client.get(f'/messages/{msg_id}', headers=carol)).status_code == 403

    denied = await client.post(f'/messages/{msg_id}/read', headers=alice)
    assert denied.status_code == 403
    assert (await client.post(f'/messages/{msg_id}/read', headers=carol)).status_code == 403

    read = await client.post(f'/messages/{msg_id}/read', headers=bob)
    assert read.status_code == 200
    assert read.json()['message']['id'] == msg_id
    read_at = read.json()['message']['read_at']
    assert read_at is not None

    again = await client.post(f'/messages/{msg_id}/read', headers=bob)
    assert again.json()['message']['read_at'] == read_at

    detail = await client.get(f'/messages/{msg_id}', headers=alice)
    assert detail.json()['message']['read_at'] == read_at


@pytest.mark.asyncio
async def test_post_message_requires_login(client, users):
    res = await client.post('/messages', json={'to_username': 'bob', 'body': 'hi'})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_post_message_to_unknown_user(client, users, auth):
    res = await client.post('/messages', json={'to_username': 'nobody', 'body': 'hi'}, headers=auth('alice'))
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_post_message_empty_body(client, users, auth):
    res = await client.post('/messages', json={'to_username': 'bob', 'body': ''}, headers=auth('alice'))
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_unknown_message(client, users, auth):
    assert (await client.get('/messages/999', headers=auth('alice'))).status_code == 404
    assert (await client.post('/messages/999/read', headers=auth('alice'))).status_code == 404


@pytest.mark.asyncio
async def test_message_detail_requires_login(client, users):
    assert (await client.get('/messages/1')).status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize('msg_id', [0, 2**31, 2**64])
async def test_out_of_range_message_id_is_validation_error(client, users, auth, msg_id):
    res = await client.get(f'/messages/{msg_id}', headers=auth('alice'))
    assert res.status_code == 400
    assert res.json()['error']['status'] == 400

    res = await client.post(f'/messages/{msg_id}/read', headers=auth('bob'))
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_timestamps_serialize_the_same_on_write_and_read(client, users, auth):
    sent = await client.post('/messages', json={'to_username': 'bob', 'body': 'hi'}, headers=auth('alice'))
    message = sent.json()['message']

    detail = await client.get(f"/messages/{message['id']}", headers=auth('bob'))
    assert detail.json()['message']['sent_at'] == message['sent_at']

    [received] = (await client.get('/users/bob/to', headers=auth('bob'))).json()['messages']
    assert received['sent_at'] == message['sent_at']
