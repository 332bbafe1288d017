# 📄 File: lexcircle/modules/social_graph/__init__.py
# 🧭 Purpose (Layman Explanation):
# The part of LexCircle that keeps track of who follows whom and who blocked whom.
# 🧪 Purpose (Technical Summary):
# Social graph module: domain (records, store contract, graph and repair services),
# infrastructure (SQLAlchemy store, notification dispatcher) and presentation (FastAPI routers).
# 🔗 Dependencies:
# lexcircle.shared
# 🔄 Connected Modules / Calls From:
# lexcircle.api.v1.router, lexcircle.background_jobs

"""
Social Graph Module

Domain Layer:
- UserRecord, RelationKind and report models
- UserRecordStore contract
- SubscriptionGraphService: follow, unfollow, block, unblock and graph queries
- GraphRepairService: counter and orphan repair

Infrastructure Layer:
- SQLAlchemyUserRecordStore with per-record transactions
- DatabaseNotificationDispatcher

Presentation Layer:
- /subscriptions, /users/{ref} and /admin routers
"""
