from . import auth, onboardings, employees, sync_routes, dashboard_routes

__all__ = [
    'auth', 'onboardings', 'employees',
    'sync_routes', 'dashboard_routes'
]
