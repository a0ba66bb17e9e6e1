from __future__ import annotations

import django_filters

from carelog.alerts.models import Notification, NotificationSeverity


class NotificationFilter(django_filters.FilterSet):
    severity = django_filters.ChoiceFilter(choices=NotificationSeverity.choices)
    actionType = django_filters.CharFilter(field_name="action_type")
    includeRead = django_filters.BooleanFilter(method="filter_include_read")

    class Meta:
        model = Notification
        fields = ["severity", "actionType", "includeRead"]

    def filter_include_read(self, queryset, name, value):
        if value:
            return queryset
        return queryset.filter(is_read=False)
