# services/pipeline.py
from dataclasses import dataclass

from app.core.firebase import get_db, init_firebase
from app.services.dispatcher import Dispatcher, FirebasePushClient
from app.services.notification_store import FirestoreNotificationStore, FirestoreProfileStore
from app.services.token_resolver import TokenResolver


@dataclass
class PushPipeline:
    """The collaborators every trigger needs, built once per invocation."""

    store: FirestoreNotificationStore
    profiles: FirestoreProfileStore
    resolver: TokenResolver
    dispatcher: Dispatcher


def build_pipeline() -> PushPipeline:
    app = init_firebase()
    db = get_db()
    store = FirestoreNotificationStore(db)
    profiles = FirestoreProfileStore(db)
    return PushPipeline(
        store=store,
        profiles=profiles,
        resolver=TokenResolver(profiles),
        dispatcher=Dispatcher(FirebasePushClient(app), profiles),
    )
