"""Infrastructure modules for the application.

Centralized infrastructure components:
- configuration: Settings management (settings, I18nSettings)
- logging: Structured logging (get_module_logger, bind_request_context)
- i18n: Language resolution and translation loading
- services: Dependency injection services (SettingsDep, get_settings)

Subpackages are imported explicitly by callers so that importing one
component does not pull in the web stack.
"""
