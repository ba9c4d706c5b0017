from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """ログイン要求"""
    username = serializers.CharField(max_length=256)
    password = serializers.CharField(max_length=1024, trim_whitespace=False)


class GroupLoginSerializer(LoginSerializer):
    """グループ必須ログイン要求"""
    group = serializers.CharField(max_length=256)


class LastLogonReportSerializer(LoginSerializer):
    """休眠アカウントレポート要求"""
    days = serializers.IntegerField(min_value=1, max_value=36500)


class InactiveAccountSerializer(serializers.Serializer):
    display_name = serializers.CharField(allow_null=True)
    email = serializers.CharField(allow_null=True)
    last_logon = serializers.SerializerMethodField()

    def get_last_logon(self, obj):
        return obj.to_dict()['last_logon']
