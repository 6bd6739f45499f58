from django.urls import re_path
from . import views
app_name = "payments"
urlpatterns = [
    # /nagad-payment/create | verify | callback
    re_path(r"^nagad-payment/(?P<action>[^/]*)/?$", views.nagad_payment_view, name="nagad_payment"),
]
