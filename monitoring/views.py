import time

from django.apps import apps
from rest_framework import status
from rest_framework.decorators import api_view, throttle_classes
from rest_framework.response import Response

from .services import check_directory_connectivity


@api_view(['GET'])
@throttle_classes([])
def health(request):
    """LDAP への TCP 到達性を含むヘルスチェック (到達不可なら 503)."""
    ldap = check_directory_connectivity()
    ldap.pop('error', None)  # エラー詳細は外部に返さない
    alive = ldap['alive']
    started_at = apps.get_app_config('monitoring').started_at
    body = {
        'status': 'ok' if alive else 'unavailable',
        'uptime_seconds': round(time.monotonic() - started_at, 3),
        'ldap': ldap,
    }
    return Response(body, status=status.HTTP_200_OK if alive else status.HTTP_503_SERVICE_UNAVAILABLE)
