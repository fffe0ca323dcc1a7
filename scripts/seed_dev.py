import logging
from datetime import date

from secretsanta.context import OwnerContext
from secretsanta.db.engine import get_sessionmaker, make_engine
from secretsanta.models import Base, User
from secretsanta.workflows import (
    add_friend_as_member,
    add_member,
    create_friend,
    create_gift_idea,
    create_group,
    create_wishlist_item,
    format_budget,
    load_draw_results,
    run_draw,
)


def main() -> None:
    """Seed the development database with sample data."""
    logging.basicConfig(level=logging.INFO)
    engine = make_engine()

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    with Session.begin() as session:
        owner = User(email="maria@example.com", name="Maria")
        session.add(owner)
        session.flush()
        ctx = OwnerContext(owner.id)

        friends = [
            create_friend(session, ctx, "Joao", email="joao@example.com"),
            create_friend(session, ctx, "Rita", email="rita@example.com", phone="912000111"),
            create_friend(session, ctx, "Tiago", notes="Allergic to chocolate"),
        ]
        create_gift_idea(
            session, ctx, friends[1], "Tea set", price_range="medium", priority="high"
        )
        create_gift_idea(session, ctx, friends[0], "Board game", price_range="low")

        group = create_group(
            session,
            ctx,
            "Christmas with friends",
            description="Gift exchange at Maria's place",
            budget_min=15,
            budget_max=30,
            draw_date=date(2024, 12, 1),
            exchange_date=date(2024, 12, 24),
        )
        add_member(session, ctx, group, "Maria", email="maria@example.com")
        for friend in friends:
            add_friend_as_member(session, ctx, group, friend)

        create_wishlist_item(
            session, ctx, "Wireless headphones", price=59.9, group_id=group.id
        )

        run_draw(session, ctx, group)
        results = load_draw_results(session, ctx, group)

    print(
        f"Development database seeded: group '{group.name}' "
        f"({format_budget(group.budget_min, group.budget_max)}) "
        f"drawn with {len(results)} assignments."
    )


if __name__ == "__main__":
    main()
