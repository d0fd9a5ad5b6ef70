import json

from accounts.models import User, UserSession

ADMIN_PASSWORD = 'lantern-orchard-4417'


def make_admin(username='gatekeeper', password=ADMIN_PASSWORD):
    return User.objects.create_admin(username, password)


def bearer_for(user):
    raw_token, _ = UserSession.create_session(user)
    return {'Authorization': f'Bearer {raw_token}'}


def post_json(client, url, data, **kwargs):
    return client.post(url, data=json.dumps(data), content_type='application/json', **kwargs)
