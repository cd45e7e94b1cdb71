from django.apps import AppConfig


class DatesConfig(AppConfig):
    name = "stamp.dates"
    verbose_name = "Date formatting"
