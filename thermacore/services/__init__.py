"""
Service Organization
====================
**application/**
  Long-lived services built once by the ServiceContainer:
  SettingsStore, UnitControlService, NotificationLedger, UnitDirectoryService.

The container owns the single EventBus and hands it to every service that
publishes or listens; nothing reaches for a global instance.
"""
