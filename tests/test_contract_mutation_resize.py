import unittest

from studygrid.engine import NOOP, REASON_COLLISION, REASON_EXITING, REASON_OUT_OF_RANGE, MutationEngine
from studygrid.grouping import group_day
from studygrid.model import EXITING, STABLE, NoteItem, Slot
from studygrid.store import SlotStore

D = "2024-01-01"


class TestResizeBlockContract(unittest.TestCase):
    def test_resize_below_one_hour_is_noop(self) -> None:
        engine = MutationEngine(SlotStore([Slot(D, 9, "X")]))
        before = engine.snapshot()
        block = engine.blocks_for(D)[0]
        self.assertEqual(engine.resize_block(block, 9).status, NOOP)
        self.assertEqual(engine.resize_block(block, 8).status, NOOP)
        self.assertEqual(engine.resize_block(block, 10).status, NOOP)
        self.assertEqual(engine.snapshot(), before)

    def test_extend_clones_representative(self) -> None:
        notes = (NoteItem("n1", "drill"),)
        engine = MutationEngine(SlotStore([Slot(D, 9, "X", notes=notes)]))
        res = engine.resize_block(engine.blocks_for(D)[0], 12)
        self.assertTrue(res.ok)
        self.assertEqual(res.changed, ((D, 10), (D, 11)))
        blocks = engine.blocks_for(D)
        self.assertEqual([(b.start_hour, b.end_hour) for b in blocks], [(9, 12)])
        for h in (10, 11):
            self.assertEqual(engine.store.get(D, h).notes, notes)
            self.assertEqual(engine.store.get(D, h).lifecycle, STABLE)

    def test_extend_into_another_block_collides(self) -> None:
        engine = MutationEngine(SlotStore([Slot(D, 9, "X"), Slot(D, 12, "Y")]))
        before = engine.snapshot()
        res = engine.resize_block(engine.blocks_for(D)[0], 13)
        self.assertEqual(res.reason, REASON_COLLISION)
        self.assertEqual(engine.snapshot(), before)

    def test_extend_past_grid_end_is_rejected(self) -> None:
        engine = MutationEngine(SlotStore([Slot(D, 23, "X")]))
        res = engine.resize_block(engine.blocks_for(D)[0], 26)
        self.assertEqual(res.reason, REASON_OUT_OF_RANGE)
        self.assertTrue(engine.resize_block(engine.blocks_for(D)[0], 25).ok)
        self.assertEqual(engine.blocks_for(D)[0].end_hour, 25)

    def test_shrink_is_two_phase(self) -> None:
        engine = MutationEngine(SlotStore([Slot(D, h, "X") for h in (9, 10, 11)]))
        res = engine.resize_block(engine.blocks_for(D)[0], 10)
        self.assertTrue(res.ok)
        self.assertEqual(res.exiting, ((D, 10), (D, 11)))

        # Phase one is visible right away.
        self.assertEqual(engine.store.get(D, 10).lifecycle, EXITING)
        self.assertEqual(engine.store.get(D, 11).lifecycle, EXITING)
        blocks = engine.blocks_for(D)
        self.assertEqual(
            [(b.start_hour, b.end_hour, b.has_exiting) for b in blocks],
            [(9, 10, False), (10, 11, True), (11, 12, True)],
        )

        # Phase two, after the caller's delay.
        done = engine.complete_removal(res.exiting)
        self.assertTrue(done.ok)
        self.assertEqual([(b.start_hour, b.end_hour) for b in engine.blocks_for(D)], [(9, 10)])
        self.assertEqual(group_day(engine.store.slots_for_date(D)), engine.blocks_for(D))

    def test_block_taken_before_settle_still_resolves(self) -> None:
        engine = MutationEngine()
        engine.create_or_edit_slot((D, 9), "math")
        engine.create_or_edit_slot((D, 10), "math")
        block = engine.blocks_for(D)[0]
        self.assertTrue(block.has_entering)

        engine.settle_entering([(D, 9), (D, 10)])
        res = engine.resize_block(block, 11)
        self.assertTrue(res.ok, res)
        self.assertEqual([(b.start_hour, b.end_hour) for b in engine.blocks_for(D)], [(9, 11)])

    def test_block_split_by_pending_removal_reports_exiting(self) -> None:
        engine = MutationEngine(SlotStore([Slot(D, h, "X") for h in (9, 10, 11)]))
        block = engine.blocks_for(D)[0]
        engine.delete_block((D, 9))
        self.assertEqual(engine.resize_block(block, 12).reason, REASON_EXITING)


if __name__ == "__main__":
    unittest.main(verbosity=2)
