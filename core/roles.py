ROLE_CONFIG = {
    'Front Office': {
        'permissions': [
            'core.view_dashboard',
            'core.access_testing',
        ]
    },
    'Chemist': {
        'permissions': [
            'core.view_dashboard',
            'core.access_action_items',
        ]
    },
    'HOD': {
        'permissions': [
            'core.view_dashboard',
            'core.access_action_items',
            'core.access_testing',
        ]
    },
    'QA': {
        'permissions': [
            'core.view_dashboard',
            'core.access_action_items',
            'core.access_master_data',
        ]
    },
    'Calibration': {
        'permissions': [
            'core.view_dashboard',
            'core.access_calibration',
        ]
    },
    'Document Controller': {
        'permissions': [
            'core.view_dashboard',
            'core.access_master_data',
        ]
    },
}


def seed_roles():
    """Create the role groups and attach their permissions; returns the group names."""
    from django.contrib.auth.models import Group, Permission

    names = []
    for role_name, config in ROLE_CONFIG.items():
        group, _ = Group.objects.get_or_create(name=role_name)
        perms = Permission.objects.filter(
            content_type__app_label='core',
            codename__in=[perm.split('.')[-1] for perm in config['permissions']],
        )
        group.permissions.set(perms)
        names.append(role_name)
    return names
