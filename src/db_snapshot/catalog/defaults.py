"""Entity catalog for the license back office.

Entity names are the keys used in snapshot documents; tables are the
storage tables behind them.  Plan prices, ticket replies, and ticket
attachments are embedded in their parent records and are never restored
on their own.
"""

from db_snapshot.catalog.models import EntityCatalog, EntityDef, ForeignKey, NestedChild

DEFAULT_CATALOG = EntityCatalog(
    entities=[
        EntityDef(name="currencies", table="currencies", pk="code"),
        EntityDef(name="users", table="users"),
        EntityDef(name="system_settings", table="system_settings", pk="key"),
        EntityDef(name="remote_configs", table="remote_configs"),
        EntityDef(
            name="plans",
            table="subscription_plans",
            nested=[
                NestedChild(
                    key="prices",
                    table="plan_prices",
                    parent_field="plan_id",
                    references=[ForeignKey(entity="currencies", field="currency")],
                ),
            ],
        ),
        EntityDef(
            name="licenses",
            table="licenses",
            references=[
                ForeignKey(entity="plans", field="plan_id"),
                ForeignKey(entity="users", field="user_id"),
            ],
        ),
        EntityDef(
            name="transactions",
            table="transactions",
            references=[
                ForeignKey(entity="licenses", field="license_id"),
                ForeignKey(entity="plans", field="plan_id"),
                ForeignKey(entity="users", field="user_id"),
            ],
        ),
        EntityDef(
            name="notifications",
            table="notifications",
            references=[ForeignKey(entity="users", field="user_id")],
        ),
        EntityDef(
            name="audit_logs",
            table="audit_logs",
            references=[ForeignKey(entity="users", field="user_id")],
        ),
        EntityDef(
            name="support_tickets",
            table="support_tickets",
            references=[ForeignKey(entity="users", field="user_id")],
            nested=[
                NestedChild(
                    key="replies",
                    table="support_replies",
                    parent_field="ticket_id",
                    references=[ForeignKey(entity="users", field="user_id")],
                ),
                NestedChild(
                    key="attachments",
                    table="ticket_attachments",
                    parent_field="ticket_id",
                ),
            ],
        ),
    ]
)

# Column hints for the PostgreSQL adapter
DEFAULT_JSONB_COLUMNS: list[str] = ["features", "limits", "value", "metadata"]

DEFAULT_TIMESTAMP_COLUMNS: list[str] = [
    "created_at",
    "updated_at",
    "last_updated",
    "activation_date",
    "expire_date",
    "last_renewal_date",
    "reply_at",
    "sent_at",
    "date",
]
