"""ログイン成功後のアクセストークン (JWT) 発行。"""
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings


def issue_token(username, **extra_claims):
    now = datetime.now(timezone.utc)
    payload = {
        'sub': username,
        'name': username,
        'iat': now,
        'exp': now + timedelta(hours=getattr(settings, 'JWT_EXPIRES_HOURS', 8)),
    }
    company = getattr(settings, 'JWT_COMPANY_CLAIM', '')
    if company:
        payload['company'] = company
    payload.update(extra_claims)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=getattr(settings, 'JWT_ALGORITHM', 'HS256'))


def decode_token(token):
    """署名/期限を検証してクレームを返す (不正なら jwt.InvalidTokenError)."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[getattr(settings, 'JWT_ALGORITHM', 'HS256')])
