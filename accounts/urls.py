from django.urls import path

from . import views

app_name = 'accounts'

urlpatterns = [
    path('login', views.login, name='login'),
    path('login/group', views.group_login, name='group-login'),
    path('lastLogon/report', views.last_logon_report, name='last-logon-report'),
]
