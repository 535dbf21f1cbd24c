"""Domain layer of the notification synchronization engine."""
