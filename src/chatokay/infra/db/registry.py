from __future__ import annotations

from dataclasses import dataclass, field

from src.chatokay.infra.db.inmemory import (
    InMemoryAppointmentRepository,
    InMemoryBusinessRepository,
    InMemoryPlatformSettingsRepository,
    InMemorySubscriptionRepository,
    InMemoryUserRepository,
)
from src.chatokay.infra.db.repositories import (
    AppointmentRepository,
    BusinessRepository,
    PlatformSettingsRepository,
    SubscriptionRepository,
    UserRepository,
)


@dataclass
class RepositoryRegistry:
    """Single mutable home for the active repository implementations.

    Services keep a reference to the registry rather than to individual
    repositories, so swapping in SQL-backed implementations at startup (or
    resetting state between tests) is seen everywhere.
    """

    users: UserRepository = field(default_factory=InMemoryUserRepository)
    businesses: BusinessRepository = field(default_factory=InMemoryBusinessRepository)
    subscriptions: SubscriptionRepository = field(default_factory=InMemorySubscriptionRepository)
    appointments: AppointmentRepository = field(default_factory=InMemoryAppointmentRepository)
    platform_settings: PlatformSettingsRepository = field(default_factory=InMemoryPlatformSettingsRepository)

    def reset(self) -> None:
        """Replace every repository with a fresh in-memory instance."""

        self.users = InMemoryUserRepository()
        self.businesses = InMemoryBusinessRepository()
        self.subscriptions = InMemorySubscriptionRepository()
        self.appointments = InMemoryAppointmentRepository()
        self.platform_settings = InMemoryPlatformSettingsRepository()


repositories = RepositoryRegistry()
