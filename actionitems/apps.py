from django.apps import AppConfig


class ActionitemsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'actionitems'
    verbose_name = 'Action items'
