import unittest
from decimal import Decimal

from leasemodel.sensitivity import batch as batches
from leasemodel.sensitivity.request import parse_request
from tests.fixtures import fixed_rent_proposal, resolved, revenue_share_proposal

D = Decimal


def _requests():
    return [
        parse_request({"variable": "rent", "range_percent": 20, "metric": "total_rent", "data_points": 3}),
        parse_request({"variable": "other_opex", "range_percent": 10, "metric": "nav", "data_points": 3}),
    ]


class TestBatch(unittest.TestCase):
    def setUp(self):
        self.baseline = resolved(fixed_rent_proposal())

    def test_submit_and_complete(self):
        bid = batches.submit(self.baseline, _requests())
        self.assertTrue(bid.startswith("b_"))
        batch = batches.wait(bid, timeout=60)
        self.assertEqual(batch.status, "completed")
        self.assertEqual(len(batch.results), 2)
        self.assertEqual(batch.results[0].total_impact, D("60000000.00"))
        stages = [e["stage"] for e in batch.events]
        self.assertEqual(stages[0], "Start")
        self.assertEqual(stages[-1], "Done")
        self.assertFalse(batches.cancel(bid))

    def test_execute_runs_in_order(self):
        batch = batches.REGISTRY.create(self.baseline, _requests())
        self.assertEqual(batch.status, "queued")
        batches.execute(batch)
        self.assertEqual(batch.status, "completed")
        self.assertEqual([r.variable.value for r in batch.results], ["rent", "other_opex"])
        self.assertTrue(batch.finished.is_set())

    def test_cancel_before_start(self):
        batch = batches.REGISTRY.create(self.baseline, _requests())
        self.assertTrue(batches.cancel(batch.id))
        batches.execute(batch)
        self.assertEqual(batch.status, "cancelled")
        self.assertEqual(batch.results, [])

    def test_cancel_between_runs(self):
        batch = batches.REGISTRY.create(self.baseline, _requests())
        original = batches.run_request

        def run_then_cancel(*args, **kwargs):
            result = original(*args, **kwargs)
            batch.cancel_requested.set()
            return result

        batches.run_request = run_then_cancel
        try:
            batches.execute(batch)
        finally:
            batches.run_request = original
        self.assertEqual(batch.status, "cancelled")
        # the run in progress finished; the next one never started
        self.assertEqual(len(batch.results), 1)
        self.assertEqual(batch.events[-1]["stage"], "Cancel")

    def test_failed_request_marks_batch_failed(self):
        req = parse_request({"variable": "rent_growth", "range_percent": 20, "metric": "nav"})
        batch = batches.REGISTRY.create(resolved(revenue_share_proposal()), [req])
        batches.execute(batch)
        self.assertEqual(batch.status, "failed")
        self.assertIn("rent_growth", batch.error)

    def test_unknown_batch(self):
        self.assertIsNone(batches.get("b_missing"))
        self.assertFalse(batches.cancel("b_missing"))
        self.assertIsNone(batches.wait("b_missing", timeout=0))


class TestBatchRegistry(unittest.TestCase):
    def setUp(self):
        self.baseline = resolved(fixed_rent_proposal())

    def test_oldest_finished_batches_are_evicted(self):
        registry = batches.BatchRegistry(max_finished=2)
        pending = registry.create(self.baseline, [])
        done = [registry.create(self.baseline, []) for _ in range(3)]
        for b in done:
            registry.set_status(b, "completed")
        self.assertIsNone(registry.get(done[0].id))
        self.assertIs(registry.get(done[1].id), done[1])
        self.assertIs(registry.get(done[2].id), done[2])
        # queued batches are never evicted
        self.assertIs(registry.get(pending.id), pending)
        self.assertEqual(len(registry), 3)

    def test_repeated_final_status_counts_once(self):
        registry = batches.BatchRegistry(max_finished=1)
        first = registry.create(self.baseline, [])
        registry.set_status(first, "cancelled")
        registry.set_status(first, "failed", "late error")
        self.assertIs(registry.get(first.id), first)
        self.assertEqual(first.error, "late error")

    def test_discard_only_finished(self):
        registry = batches.BatchRegistry()
        batch = registry.create(self.baseline, [])
        self.assertFalse(registry.discard(batch.id))
        registry.set_status(batch, "running")
        self.assertFalse(registry.discard(batch.id))
        registry.set_status(batch, "completed")
        self.assertTrue(registry.discard(batch.id))
        self.assertIsNone(registry.get(batch.id))
        self.assertFalse(registry.discard(batch.id))
        self.assertEqual(len(registry), 0)

    def test_discard_submitted_batch(self):
        bid = batches.submit(self.baseline, _requests()[:1])
        batch = batches.wait(bid, timeout=60)
        self.assertEqual(batch.status, "completed")
        self.assertTrue(batches.discard(bid))
        self.assertIsNone(batches.get(bid))
        self.assertIsNone(batches.wait(bid, timeout=0))
        # the caller's reference stays usable
        self.assertEqual(len(batch.results), 1)
        self.assertFalse(batches.discard("b_missing"))


if __name__ == '__main__':
    unittest.main()
