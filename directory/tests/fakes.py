"""ldap3.Connection の代わりに使う MagicMock の組み立て補助。"""
from unittest.mock import MagicMock

from directory.config import DirectoryConfig

SUCCESS = {'result': 0, 'description': 'success', 'message': ''}
INVALID_CREDENTIALS = {
    'result': 49,
    'description': 'invalidCredentials',
    'message': '80090308: LdapErr: DSID-0C09044E, comment: AcceptSecurityContext error, data 52e',
}
UNKNOWN_USER = {
    'result': 49,
    'description': 'invalidCredentials',
    'message': '80090308: LdapErr: DSID-0C09044E, comment: AcceptSecurityContext error, data 525',
}
SIZE_LIMIT = {'result': 4, 'description': 'sizeLimitExceeded', 'message': ''}
OPERATIONS_ERROR = {'result': 1, 'description': 'operationsError', 'message': '000004DC'}


def make_config(**overrides):
    values = dict(
        server_url='ldap://ldap.example.com:389',
        search_base='DC=example,DC=com',
        domain='example.com',
    )
    values.update(overrides)
    return DirectoryConfig(**values)


def entry(dn, attributes=None, raw_attributes=None):
    return {
        'type': 'searchResEntry',
        'dn': dn,
        'attributes': attributes or {},
        'raw_attributes': raw_attributes or {},
    }


def make_connection(bind_result=True, bind_status=None, searches=()):
    """bind 結果と検索ごとの (response, result) を順に返す Connection モック。

    searches の要素に例外を置くと、その回の search で送出する。
    """
    conn = MagicMock()
    conn.bind.return_value = bind_result
    conn.result = bind_status or (SUCCESS if bind_result else INVALID_CREDENTIALS)
    plan = list(searches)

    def search_side_effect(**kwargs):
        step = plan.pop(0)
        if isinstance(step, Exception):
            raise step
        response, result = step
        conn.response = response
        conn.result = result
        return result['result'] == 0

    conn.search.side_effect = search_side_effect
    return conn
