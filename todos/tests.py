import threading
from unittest import mock

from django.apps import apps
from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APISimpleTestCase

from todos.exceptions import IdentifierSpaceExhausted, InvalidPage, TodoNotFound
from todos.ids import MAX_IDENTIFIER, IdentifierGenerator
from todos.services import PAGE_SIZE, TodoStore, build_store


class IdentifierGeneratorTests(SimpleTestCase):
    def test_issues_increasing_ids_from_one(self):
        generator = IdentifierGenerator()
        self.assertEqual(generator.current, 0)
        self.assertEqual([generator.next_id() for _ in range(3)], [1, 2, 3])
        self.assertEqual(generator.current, 3)

    def test_default_range_is_16_bit(self):
        self.assertEqual(IdentifierGenerator().max_value, MAX_IDENTIFIER)
        self.assertEqual(MAX_IDENTIFIER, 65535)

    def test_exhaustion_raises_without_wrapping(self):
        generator = IdentifierGenerator(max_value=2)
        generator.next_id()
        generator.next_id()
        with self.assertRaises(IdentifierSpaceExhausted):
            generator.next_id()
        self.assertEqual(generator.current, 2)


class TodoStoreTests(SimpleTestCase):
    def setUp(self):
        self.store = TodoStore()

    def test_create_returns_unique_increasing_ids(self):
        ids = [self.store.create(f"todo {n}") for n in range(25)]
        self.assertEqual(ids, list(range(1, 26)))

    def test_read_after_create(self):
        todo_id = self.store.create("  buy milk\n")
        self.assertEqual(self.store.read(todo_id), "  buy milk\n")

    def test_read_missing_raises_not_found(self):
        with self.assertRaises(TodoNotFound) as ctx:
            self.store.read(1)
        self.assertEqual(ctx.exception.todo_id, 1)
        self.assertEqual(str(ctx.exception), "No todo with this ID 1")

    def test_update_and_delete_misses_share_read_message(self):
        with self.assertRaises(TodoNotFound) as ctx:
            self.store.update(4, "x")
        self.assertEqual(str(ctx.exception), "No todo with this ID 4")
        with self.assertRaises(TodoNotFound) as ctx:
            self.store.delete(4)
        self.assertEqual(str(ctx.exception), "No todo with this ID 4")

    def test_update_replaces_content(self):
        todo_id = self.store.create("first")
        self.store.update(todo_id, "second")
        self.assertEqual(self.store.read(todo_id), "second")
        self.assertEqual(len(self.store), 1)

    def test_update_missing_does_not_create(self):
        self.store.create("only")
        with self.assertRaises(TodoNotFound):
            self.store.update(2, "ghost")
        self.assertEqual(len(self.store), 1)
        with self.assertRaises(TodoNotFound):
            self.store.read(2)
        # An update miss must not consume an id
        self.assertEqual(self.store.create("next"), 2)

    def test_deleted_todo_is_gone_for_good(self):
        todo_id = self.store.create("temp")
        self.store.delete(todo_id)

        with self.assertRaises(TodoNotFound):
            self.store.read(todo_id)
        with self.assertRaises(TodoNotFound):
            self.store.delete(todo_id)
        with self.assertRaises(TodoNotFound):
            self.store.update(todo_id, "revived")

    def test_deleted_ids_are_never_reissued(self):
        first = self.store.create("a")
        second = self.store.create("b")
        self.store.delete(second)
        self.store.delete(first)
        self.assertEqual(self.store.create("c"), 3)

    def test_create_fails_cleanly_when_ids_run_out(self):
        store = TodoStore(generator=IdentifierGenerator(max_value=1))
        store.create("last one")
        with self.assertRaises(IdentifierSpaceExhausted):
            store.create("too many")
        self.assertEqual(len(store), 1)
        self.assertEqual(store.list_page(1), (["last one"], None))

    def test_concurrent_creates_get_distinct_ids(self):
        results = []
        results_lock = threading.Lock()

        def worker():
            issued = [self.store.create("x") for _ in range(200)]
            with results_lock:
                results.extend(issued)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(results), list(range(1, 1601)))

    def test_stats_reports_store_summary(self):
        self.store.create("a")
        self.store.create("b")
        self.store.delete(1)
        self.assertEqual(
            self.store.stats(),
            {
                "records": 1,
                "last_issued_id": 2,
                "max_identifier": MAX_IDENTIFIER,
                "page_size": PAGE_SIZE,
            },
        )

    def test_rejects_non_positive_page_size(self):
        with self.assertRaises(ValueError):
            TodoStore(page_size=0)


class TodoPaginationTests(SimpleTestCase):
    def setUp(self):
        self.store = TodoStore(page_size=10)

    def _fill(self, count):
        return [self.store.create(f"todo {n}") for n in range(1, count + 1)]

    def test_empty_store_has_no_first_page(self):
        with self.assertRaises(InvalidPage) as ctx:
            self.store.list_page(1)
        self.assertEqual(ctx.exception.page, 1)
        self.assertEqual(str(ctx.exception), "Invalid Page 1")

    def test_exactly_one_full_page(self):
        self._fill(10)
        items, next_page = self.store.list_page(1)
        self.assertEqual(len(items), 10)
        self.assertIsNone(next_page)

        with self.assertRaises(InvalidPage) as ctx:
            self.store.list_page(2)
        self.assertEqual(ctx.exception.page, 2)

    def test_one_record_spills_onto_second_page(self):
        self._fill(11)
        items, next_page = self.store.list_page(1)
        self.assertEqual(len(items), 10)
        self.assertEqual(next_page, 2)

        items, next_page = self.store.list_page(2)
        self.assertEqual(items, ["todo 11"])
        self.assertIsNone(next_page)

    def test_page_zero_is_clamped_to_one(self):
        self._fill(15)
        self.assertEqual(self.store.list_page(0), self.store.list_page(1))
        self.assertEqual(self.store.list_page(-3), self.store.list_page(1))

    def test_page_zero_on_empty_store_reports_page_one(self):
        with self.assertRaises(InvalidPage) as ctx:
            self.store.list_page(0)
        self.assertEqual(ctx.exception.page, 1)

    def test_huge_page_number_is_invalid(self):
        self.store.create("a")
        with self.assertRaises(InvalidPage) as ctx:
            self.store.list_page(10**18)
        self.assertEqual(ctx.exception.page, 10**18)

    def test_pages_follow_id_order(self):
        class CountdownGenerator(IdentifierGenerator):
            def next_id(self):
                self._current += 1
                return 100 - self._current

        store = TodoStore(page_size=2, generator=CountdownGenerator())
        for content in ("ninety-nine", "ninety-eight", "ninety-seven"):
            store.create(content)
        self.assertEqual(store.list_page(1), (["ninety-seven", "ninety-eight"], 2))
        self.assertEqual(store.list_page(2), (["ninety-nine"], None))

    def test_following_next_page_visits_every_todo_once(self):
        self._fill(37)
        self.store.delete(5)
        self.store.delete(20)

        collected = []
        page = 1
        while page is not None:
            items, page = self.store.list_page(page)
            collected.extend(items)

        expected = [f"todo {n}" for n in range(1, 38) if n not in (5, 20)]
        self.assertEqual(collected, expected)

    def test_updates_keep_id_order(self):
        self._fill(3)
        self.store.update(1, "changed")
        self.assertEqual(self.store.list_page(1), (["changed", "todo 2", "todo 3"], None))

    def test_deletes_shift_records_between_pages(self):
        self._fill(11)
        self.assertEqual(self.store.list_page(2), (["todo 11"], None))

        self.store.delete(1)
        items, next_page = self.store.list_page(1)
        self.assertEqual(items[-1], "todo 11")
        self.assertIsNone(next_page)
        with self.assertRaises(InvalidPage):
            self.store.list_page(2)

    def test_custom_page_size(self):
        store = TodoStore(page_size=3)
        for n in range(7):
            store.create(str(n))
        self.assertEqual(store.list_page(3), (["6"], None))
        self.assertEqual(store.list_page(2), (["3", "4", "5"], 3))

    @override_settings(TODO_PAGE_SIZE=4)
    def test_build_store_reads_page_size_setting(self):
        self.assertEqual(build_store().page_size, 4)


class TodoApiTests(APISimpleTestCase):
    def setUp(self):
        self.store = TodoStore()
        patcher = mock.patch.object(apps.get_app_config("todos"), "store", self.store)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_create_and_read_todo(self):
        url = reverse("todos:todo-list")
        response = self.client.post(url, {"content": "first"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data, {"id": 1})

        response = self.client.get(reverse("todos:todo-detail", args=[1]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"id": 1, "content": "first"})

    def test_create_accepts_blank_content(self):
        response = self.client.post(reverse("todos:todo-list"), {"content": ""}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.store.read(response.data["id"]), "")

    def test_create_requires_content(self):
        response = self.client.post(reverse("todos:todo-list"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(self.store), 0)

    def test_missing_todo_returns_404(self):
        url = reverse("todos:todo-detail", args=[7])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "No todo with this ID 7")

    def test_update_todo(self):
        todo_id = self.store.create("old")
        url = reverse("todos:todo-detail", args=[todo_id])
        response = self.client.put(url, {"content": "new"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.store.read(todo_id), "new")

    def test_update_missing_todo_returns_404(self):
        url = reverse("todos:todo-detail", args=[3])
        response = self.client.put(url, {"content": "new"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(len(self.store), 0)

    def test_delete_removes_todo(self):
        todo_id = self.store.create("temp")
        url = reverse("todos:todo-detail", args=[todo_id])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_pages(self):
        for n in range(1, 12):
            self.store.create(f"todo {n}")

        url = reverse("todos:todo-list")
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["items"]), 10)
        self.assertEqual(response.data["next_page"], 2)

        response = self.client.get(url, {"page": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"items": ["todo 11"], "next_page": None})

    def test_list_empty_store_returns_404(self):
        response = self.client.get(reverse("todos:todo-list"), {"page": 0})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Invalid Page 1")

    def test_list_rejects_malformed_page(self):
        url = reverse("todos:todo-list")
        self.assertEqual(self.client.get(url, {"page": "abc"}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.get(url, {"page": -1}).status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_rejects_page_beyond_range(self):
        self.store.create("a")
        url = reverse("todos:todo-list")
        response = self.client.get(url, {"page": 10**18})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(url, {"page": 65536})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get(url, {"page": 65535})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Invalid Page 65535")

    def test_create_when_ids_exhausted_returns_507(self):
        self.store = TodoStore(generator=IdentifierGenerator(max_value=0))
        patcher = mock.patch.object(apps.get_app_config("todos"), "store", self.store)
        patcher.start()
        self.addCleanup(patcher.stop)

        response = self.client.post(reverse("todos:todo-list"), {"content": "x"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_507_INSUFFICIENT_STORAGE)
        self.assertIn("exhausted", response.data["detail"])

    def test_health_reports_store_stats(self):
        self.store.create("a")
        response = self.client.get(reverse("todos:health"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "healthy")
        self.assertEqual(response.data["store"]["records"], 1)
        self.assertEqual(response.data["store"]["last_issued_id"], 1)

    def test_schema_is_served(self):
        response = self.client.get(reverse("schema"), {"format": "json"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
