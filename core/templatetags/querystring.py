from django import template
from django.http import QueryDict

register = template.Library()


def _is_empty(value):
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == '':
        return True
    return False


def _query(context):
    request = context.get('request')
    if request is not None:
        return request.GET.copy()
    return QueryDict('', mutable=True)


@register.simple_tag(takes_context=True)
def url_with_query(context, **overrides):
    query = _query(context)
    query.pop('export', None)
    for key, value in overrides.items():
        if _is_empty(value):
            query.pop(key, None)
        else:
            query[key] = value
    encoded = query.urlencode()
    return f"?{encoded}" if encoded else '?'


@register.simple_tag(takes_context=True)
def sort_url(context, key):
    """Link for a column header: asc first, then desc on the same column."""
    query = _query(context)
    query.pop('export', None)
    query.pop('page', None)
    direction = 'desc' if query.get('sort') == key and query.get('dir') != 'desc' else 'asc'
    query['sort'] = key
    query['dir'] = direction
    return f"?{query.urlencode()}"


@register.simple_tag(takes_context=True)
def sort_indicator(context, key):
    query = _query(context)
    if query.get('sort') != key:
        return ''
    return '▼' if query.get('dir') == 'desc' else '▲'
