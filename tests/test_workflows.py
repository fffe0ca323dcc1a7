import random
import unittest
from datetime import date
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from secretsanta.context import OwnerContext
from secretsanta.db.engine import get_sessionmaker, make_engine
from secretsanta.draw.reveal import RevealState
from secretsanta.errors import NotFoundError, PreconditionError, StorageUnavailableError
from secretsanta.models import (
    Base,
    DrawResult,
    GiftIdea,
    Group,
    GroupMember,
    User,
    WishlistItem,
)
from secretsanta.workflows import (
    add_friend_as_member,
    add_member,
    create_friend,
    create_gift_idea,
    create_group,
    create_wishlist_item,
    delete_friend,
    delete_gift_idea,
    delete_group,
    delete_wishlist_item,
    format_budget,
    get_friend,
    get_gift_idea,
    get_group,
    get_wishlist_item,
    list_friends,
    list_gift_ideas,
    list_groups,
    list_wishlist_items,
    load_draw_results,
    remove_member,
    run_draw,
    set_gift_purchased,
    update_friend,
    update_gift_idea,
    update_group_details,
    update_wishlist_item,
)


class WorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)

        with self.Session.begin() as session:
            owner = User(email="owner@example.com", name="Owner")
            other = User(email="other@example.com", name="Other")
            session.add_all([owner, other])
            session.flush()
            self.ctx = OwnerContext(owner.id)
            self.other_ctx = OwnerContext(other.id)

    def tearDown(self):
        self.engine.dispose()

    def _group_with_members(self, session, names=("Ana", "Bruno", "Carla")):
        group = create_group(session, self.ctx, "Natal")
        for name in names:
            add_member(session, self.ctx, group, name)
        return group


class GroupWorkflowTests(WorkflowTestCase):
    def test_create_group(self):
        with self.Session.begin() as session:
            group = create_group(
                session,
                self.ctx,
                "  Natal 2024 ",
                description="  ",
                budget_min=10,
                budget_max=20,
                exchange_date=date(2024, 12, 24),
            )
            self.assertEqual(group.name, "Natal 2024")
            self.assertIsNone(group.description)
            self.assertFalse(group.is_drawn)
            self.assertEqual(group.owner_id, self.ctx.user_id)

    def test_create_group_validation(self):
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                create_group(session, self.ctx, "   ")
            with self.assertRaises(ValueError):
                create_group(session, self.ctx, "Bad", budget_min=50, budget_max=10)
            self.assertEqual(list_groups(session, self.ctx), [])

    def test_groups_are_scoped_to_owner(self):
        with self.Session.begin() as session:
            group = create_group(session, self.ctx, "Mine")
            create_group(session, self.other_ctx, "Theirs")

            self.assertEqual([g.name for g in list_groups(session, self.ctx)], ["Mine"])
            self.assertIs(get_group(session, self.ctx, group.id), group)
            with self.assertRaises(NotFoundError):
                get_group(session, self.other_ctx, group.id)
            with self.assertRaises(NotFoundError):
                get_group(session, self.ctx, "missing")

    def test_update_group_details(self):
        with self.Session.begin() as session:
            group = create_group(session, self.ctx, "Natal", budget_min=5)
            update_group_details(
                session, self.ctx, group, name="Natal 2025", budget_max=30
            )
            self.assertEqual(group.name, "Natal 2025")
            self.assertEqual((group.budget_min, group.budget_max), (None, 30))

            with self.assertRaises(ValueError):
                update_group_details(
                    session, self.ctx, group, name="Other", budget_min=40, budget_max=30
                )
            self.assertEqual(group.name, "Natal 2025")

            with self.assertRaises(NotFoundError):
                update_group_details(session, self.other_ctx, group, name="Hijack")

    def test_delete_group_removes_dependents(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            run_draw(session, self.ctx, group, rng=random.Random(1))
            wish = create_wishlist_item(session, self.ctx, "Scarf", group_id=group.id)
            group_id = group.id

            delete_group(session, self.ctx, group)

            self.assertIsNone(session.get(Group, group_id))
            self.assertEqual(GroupMember.list_for_group(session, group_id), [])
            self.assertEqual(DrawResult.list_for_group(session, group_id), [])
            session.refresh(wish)
            self.assertIsNone(wish.group_id)

    def test_delete_group_of_other_owner(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            with self.assertRaises(NotFoundError):
                delete_group(session, self.other_ctx, group)
            self.assertEqual(len(GroupMember.list_for_group(session, group.id)), 3)

    def test_format_budget(self):
        self.assertEqual(format_budget(10, 20), "10€ - 20€")
        self.assertEqual(format_budget(12.5, None), "Min: 12.5€")
        self.assertEqual(format_budget(None, 20), "Max: 20€")
        self.assertIsNone(format_budget(None, None))


class MemberWorkflowTests(WorkflowTestCase):
    def test_add_member_requires_name(self):
        with self.Session.begin() as session:
            group = create_group(session, self.ctx, "Natal")
            with self.assertRaises(ValueError):
                add_member(session, self.ctx, group, "  ")
            member = add_member(session, self.ctx, group, " Ana ", email="ana@example.com")
            self.assertEqual(member.name, "Ana")
            self.assertEqual(group.member_count, 1)

    def test_add_friend_as_member(self):
        with self.Session.begin() as session:
            group = create_group(session, self.ctx, "Natal")
            friend = create_friend(session, self.ctx, "Rita", email="rita@example.com")

            member = add_friend_as_member(session, self.ctx, group, friend)
            self.assertEqual(member.friend_id, friend.id)
            self.assertEqual((member.name, member.email), ("Rita", "rita@example.com"))

            with self.assertRaises(ValueError):
                add_friend_as_member(session, self.ctx, group, friend)

    def test_add_friend_of_other_owner(self):
        with self.Session.begin() as session:
            group = create_group(session, self.ctx, "Natal")
            stranger = create_friend(session, self.other_ctx, "Stranger")
            with self.assertRaises(NotFoundError):
                add_friend_as_member(session, self.ctx, group, stranger)

    def test_remove_member_invalidates_draw(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session, ("Ana", "Bruno", "Carla", "Duarte"))
            run_draw(session, self.ctx, group, rng=random.Random(2))
            self.assertTrue(group.is_drawn)

            member = GroupMember.list_for_group(session, group.id)[0]
            remove_member(session, self.ctx, group, member)

            self.assertFalse(group.is_drawn)
            self.assertEqual(DrawResult.list_for_group(session, group.id), [])
            self.assertEqual(group.member_count, 3)

    def test_remove_member_of_another_group(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            other = self._group_with_members(session)
            member = GroupMember.list_for_group(session, other.id)[0]
            with self.assertRaises(NotFoundError):
                remove_member(session, self.ctx, group, member)


class DrawWorkflowTests(WorkflowTestCase):
    def test_two_members_cannot_draw(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session, ("Ana", "Bruno"))
            with self.assertRaises(PreconditionError):
                run_draw(session, self.ctx, group)
            self.assertFalse(group.is_drawn)
            self.assertEqual(DrawResult.list_for_group(session, group.id), [])

    def test_run_draw_persists_single_cycle(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            outcome = run_draw(session, self.ctx, group, rng=random.Random(3))
            group_id = group.id

        with self.Session() as session:
            group = session.get(Group, group_id)
            self.assertTrue(group.is_drawn)
            rows = DrawResult.list_for_group(session, group_id)
        self.assertEqual({r.id for r in rows}, {r.id for r in outcome.results})
        self.assertEqual(len({r.giver_id for r in rows}), 3)
        self.assertEqual(len({r.receiver_id for r in rows}), 3)
        self.assertTrue(all(r.giver_id != r.receiver_id for r in rows))

    def test_redraw_replaces_assignment_set(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session, ("A", "B", "C", "D", "E"))
            run_draw(session, self.ctx, group, rng=random.Random(4))
            second = run_draw(session, self.ctx, group, rng=random.Random(5))

            count = session.scalar(
                select(func.count()).select_from(DrawResult).where(
                    DrawResult.group_id == group.id
                )
            )
            self.assertEqual(count, 5)
            self.assertEqual(
                {r.id for r in DrawResult.list_for_group(session, group.id)},
                {r.id for r in second.results},
            )

    def test_run_draw_requires_owner(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            with self.assertRaises(NotFoundError):
                run_draw(session, self.other_ctx, group)
            self.assertFalse(group.is_drawn)

    def test_unreachable_database_during_member_lookup(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            lost = OperationalError("SELECT", {}, Exception("disk I/O error"))
            with patch.object(GroupMember, "list_for_group", side_effect=lost):
                with self.assertRaises(StorageUnavailableError) as ctx:
                    run_draw(session, self.ctx, group)
            self.assertIs(ctx.exception.__cause__, lost)
            self.assertFalse(group.is_drawn)
            self.assertEqual(DrawResult.list_for_group(session, group.id), [])

    def test_load_draw_results_with_names_and_reveal_state(self):
        with self.Session.begin() as session:
            group = self._group_with_members(session)
            run_draw(session, self.ctx, group, rng=random.Random(6))

            reveal = RevealState()
            reveal.load("previous-group", ["stale"])
            reveal.reveal_all()

            named = load_draw_results(session, self.ctx, group, reveal)

        self.assertEqual([n.giver_name for n in named], ["Ana", "Bruno", "Carla"])
        self.assertEqual(
            sorted(n.receiver_name for n in named), ["Ana", "Bruno", "Carla"]
        )
        self.assertEqual(reveal.group_id, group.id)
        self.assertEqual(len(reveal), 0)

        reveal.reveal_all()
        self.assertEqual(reveal.revealed, frozenset(n.id for n in named))


class FriendAndGiftWorkflowTests(WorkflowTestCase):
    def test_friend_crud(self):
        with self.Session.begin() as session:
            friend = create_friend(session, self.ctx, "Rita", phone=" 912 ")
            self.assertEqual(friend.phone, "912")
            update_friend(session, self.ctx, friend, name="Rita M.", notes="likes tea")
            self.assertIs(get_friend(session, self.ctx, friend.id), friend)
            self.assertEqual([f.name for f in list_friends(session, self.ctx)], ["Rita M."])
            with self.assertRaises(NotFoundError):
                get_friend(session, self.other_ctx, friend.id)

    def test_delete_friend_removes_gift_ideas_and_unlinks_members(self):
        with self.Session.begin() as session:
            friend = create_friend(session, self.ctx, "Rita")
            create_gift_idea(session, self.ctx, friend, "Tea set")
            group = create_group(session, self.ctx, "Natal")
            member = add_friend_as_member(session, self.ctx, group, friend)

            delete_friend(session, self.ctx, friend)

            self.assertEqual(list_gift_ideas(session, self.ctx), [])
            session.refresh(member)
            self.assertIsNone(member.friend_id)
            self.assertEqual(member.name, "Rita")

    def test_gift_idea_filters(self):
        with self.Session.begin() as session:
            rita = create_friend(session, self.ctx, "Rita")
            joao = create_friend(session, self.ctx, "Joao")
            tea = create_gift_idea(
                session, self.ctx, rita, "Tea set", price_range="medium", priority="high"
            )
            book = create_gift_idea(
                session, self.ctx, joao, "Book", description="A novel about tea"
            )
            scarf = create_gift_idea(session, self.ctx, joao, "Scarf")
            set_gift_purchased(session, self.ctx, scarf)

            self.assertCountEqual(list_gift_ideas(session, self.ctx), [tea, book, scarf])
            self.assertCountEqual(
                list_gift_ideas(session, self.ctx, search="TEA"), [tea, book]
            )
            self.assertCountEqual(
                list_gift_ideas(session, self.ctx, search="rita"), [tea]
            )
            self.assertCountEqual(
                list_gift_ideas(session, self.ctx, friend_id=joao.id), [book, scarf]
            )
            self.assertEqual(list_gift_ideas(session, self.ctx, purchased=True), [scarf])
            self.assertCountEqual(
                list_gift_ideas(session, self.ctx, purchased=False), [tea, book]
            )
            self.assertEqual(list_gift_ideas(session, self.other_ctx), [])

    def test_gift_idea_update_and_delete(self):
        with self.Session.begin() as session:
            rita = create_friend(session, self.ctx, "Rita")
            joao = create_friend(session, self.ctx, "Joao")
            gift = create_gift_idea(session, self.ctx, rita, "Tea set")
            self.assertEqual(gift.priority, "medium")

            update_gift_idea(
                session, self.ctx, gift, friend=joao, title="Mug", price_range="low"
            )
            self.assertEqual((gift.friend_id, gift.title), (joao.id, "Mug"))
            self.assertIs(get_gift_idea(session, self.ctx, gift.id), gift)

            with self.assertRaises(NotFoundError):
                delete_gift_idea(session, self.other_ctx, gift)
            delete_gift_idea(session, self.ctx, gift)
            self.assertIsNone(session.get(GiftIdea, gift.id))

    def test_gift_idea_for_foreign_friend(self):
        with self.Session.begin() as session:
            stranger = create_friend(session, self.other_ctx, "Stranger")
            with self.assertRaises(NotFoundError):
                create_gift_idea(session, self.ctx, stranger, "Anything")


class WishlistWorkflowTests(WorkflowTestCase):
    def test_wishlist_crud_and_group_filter(self):
        with self.Session.begin() as session:
            group = create_group(session, self.ctx, "Natal")
            general = create_wishlist_item(session, self.ctx, "Headphones", price=80)
            for_group = create_wishlist_item(
                session, self.ctx, "Socks", group_id=group.id, priority="low"
            )

            self.assertCountEqual(
                list_wishlist_items(session, self.ctx), [general, for_group]
            )
            self.assertEqual(
                list_wishlist_items(session, self.ctx, group_id=group.id), [for_group]
            )

            update_wishlist_item(session, self.ctx, general, title="Headphones", price=60)
            self.assertEqual(general.price, 60)
            self.assertIs(get_wishlist_item(session, self.ctx, general.id), general)

            delete_wishlist_item(session, self.ctx, for_group)
            self.assertIsNone(session.get(WishlistItem, for_group.id))

    def test_wishlist_validation(self):
        with self.Session.begin() as session:
            with self.assertRaises(NotFoundError):
                create_wishlist_item(session, self.ctx, "Socks", group_id="missing")
            with self.assertRaises(ValueError):
                create_wishlist_item(session, self.ctx, "Socks", price=-1)
            with self.assertRaises(ValueError):
                create_wishlist_item(session, self.ctx, " ")

            item = create_wishlist_item(session, self.ctx, "Socks")
            with self.assertRaises(NotFoundError):
                get_wishlist_item(session, self.other_ctx, item.id)


if __name__ == "__main__":
    unittest.main()
