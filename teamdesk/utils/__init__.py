"""Pure helper functions shared by routers, services and the worker."""
