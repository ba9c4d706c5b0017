import logging

from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from directory.outcomes import LoginStatus, ReportStatus
from directory.services import DirectoryAuthService
from .serializers import (
    GroupLoginSerializer,
    InactiveAccountSerializer,
    LastLogonReportSerializer,
    LoginSerializer,
)
from .tokens import issue_token

logger = logging.getLogger('django.security.authentication')

INVALID_REQUEST_MESSAGE = 'リクエストデータが不正です。'

# 資格情報誤りと接続失敗は同じ 401 / 同じ文言で返す
LOGIN_HTTP_STATUS = {
    LoginStatus.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    LoginStatus.CONNECTION_FAILURE: status.HTTP_401_UNAUTHORIZED,
    LoginStatus.AUTHORIZATION_DENIED: status.HTTP_403_FORBIDDEN,
    LoginStatus.PROTOCOL_ERROR: status.HTTP_502_BAD_GATEWAY,
}

REPORT_HTTP_STATUS = {
    ReportStatus.AUTH_FAILURE: status.HTTP_401_UNAUTHORIZED,
    ReportStatus.AUTHORIZATION_DENIED: status.HTTP_403_FORBIDDEN,
    ReportStatus.SIZE_LIMIT_EXCEEDED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ReportStatus.PROTOCOL_ERROR: status.HTTP_502_BAD_GATEWAY,
}


def _invalid_request(serializer):
    logger.debug("Invalid request payload | fields=%s", sorted(serializer.errors))
    return Response({'message': INVALID_REQUEST_MESSAGE}, status=status.HTTP_400_BAD_REQUEST)


def _login_response(result, **claims):
    if not result.ok:
        return Response({'message': result.message}, status=LOGIN_HTTP_STATUS[result.status])
    token = issue_token(result.username, **claims)
    return Response({'token': token, 'user': {'username': result.username}})


@api_view(['POST'])
def login(request):
    """ディレクトリ bind によるログイン。成功時はトークンを返す。"""
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_request(serializer)
    data = serializer.validated_data
    result = async_to_sync(DirectoryAuthService().login)(data['username'], data['password'])
    return _login_response(result)


@api_view(['POST'])
def group_login(request):
    """指定グループ所属を必須とするログイン"""
    serializer = GroupLoginSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_request(serializer)
    data = serializer.validated_data
    result = async_to_sync(DirectoryAuthService().login)(data['username'], data['password'], data['group'])
    return _login_response(result, group=data['group'])


@api_view(['POST'])
def last_logon_report(request):
    """administrators 所属者のみ実行可能な休眠アカウントレポート"""
    serializer = LastLogonReportSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_request(serializer)
    data = serializer.validated_data
    report = async_to_sync(DirectoryAuthService().generate_report)(
        data['username'], data['password'], data['days']
    )
    if not report.ok:
        return Response({'message': report.message}, status=REPORT_HTTP_STATUS[report.status])
    return Response({
        'total_inactive': len(report.records),
        'days': data['days'],
        'users': InactiveAccountSerializer(report.records, many=True).data,
    })
