"""DI container: the composition root. ``create_app`` attaches it to ``app.state.container``."""
from datetime import timedelta

from dependency_injector import containers, providers

from finsync_proxy.auth import TokenCodec
from finsync_proxy.config import Settings
from finsync_proxy.credentials import CredentialCipher, SqlCredentialStore
from finsync_proxy.db import create_db_engine
from finsync_proxy.providers import FriendApiClient
from finsync_proxy.services import (FinanceService, ProxyRequestExecutor,
                                    ServiceAccount, SessionRefresher,
                                    SqlPortfolioRepository)


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        create_db_engine,
        settings.provided.database_url,
        echo=settings.provided.sql_echo,
    )
    cipher = providers.Singleton(
        CredentialCipher.from_secret, settings.provided.encryption_secret
    )
    credential_store = providers.Singleton(SqlCredentialStore, engine, cipher)
    portfolio_repository = providers.Singleton(SqlPortfolioRepository, engine)

    token_codec = providers.Singleton(
        TokenCodec,
        settings.provided.jwt_secret,
        algorithm=settings.provided.jwt_algorithm,
        lifetime=providers.Callable(
            lambda hours: timedelta(hours=hours), settings.provided.token_lifetime_hours
        ),
    )

    friend_api = providers.Singleton(
        FriendApiClient,
        settings.provided.friend_api_base_url,
        timeout=settings.provided.upstream_timeout_seconds,
    )
    service_account = providers.Singleton(
        ServiceAccount.from_settings,
        settings.provided.service_account_email,
        settings.provided.service_account_password,
    )
    session_refresher = providers.Singleton(
        SessionRefresher,
        friend_api,
        credential_store,
        service_account=service_account,
        fallback_attempts=settings.provided.fallback_login_attempts,
        fallback_delay=settings.provided.fallback_login_delay_seconds,
    )
    executor = providers.Singleton(
        ProxyRequestExecutor, friend_api, session_refresher, credential_store
    )
    finance_service = providers.Singleton(
        FinanceService,
        friend_api,
        credential_store,
        session_refresher,
        executor,
        portfolio_repository,
        token_codec,
        predict_attempts=settings.provided.predict_attempts,
        predict_delay=settings.provided.predict_retry_delay_seconds,
    )
