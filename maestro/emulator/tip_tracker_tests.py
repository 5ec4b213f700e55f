import unittest

from maestro.emulator.errors import (
  HasTipError,
  NoTipError,
  TipBoxFullError,
  TipCapacityError,
  TooFewTipsError,
  TooLittleTipVolumeError,
)
from maestro.emulator.tip_tracker import HeadTipTracker, MountedTips, TipBoxTracker


class TestTipBoxTracker(unittest.TestCase):
  """Tests for the tip box tracker"""

  def test_take(self):
    tracker = TipBoxTracker("T1", [False, True, True, True])
    self.assertEqual(tracker.take(2), (1, 2))
    self.assertEqual(tracker.available(), 1)
    self.assertEqual(tracker.bitmap(), "0111")
    tracker.commit()
    self.assertEqual(tracker.bitmap(), "0001")

  def test_take_too_many(self):
    tracker = TipBoxTracker("T1", [True, False])
    with self.assertRaises(TooFewTipsError):
      tracker.take(2)
    self.assertEqual(tracker.available(), 1)

  def test_put_and_fill(self):
    tracker = TipBoxTracker("T1", [True, False, False])
    tracker.put([1])
    with self.assertRaises(TipBoxFullError):
      tracker.put([0])
    self.assertEqual(tracker.fill(1), (2,))
    with self.assertRaises(TipBoxFullError):
      tracker.fill(1)

  def test_rollback(self):
    tracker = TipBoxTracker("T1", [True, True])
    tracker.take(2)
    tracker.rollback()
    self.assertEqual(tracker.available(), 2)


class TestHeadTipTracker(unittest.TestCase):
  """Tests for the head tip tracker"""

  def setUp(self) -> None:
    super().setUp()
    self.tips = MountedTips(tip_set="T1", box="T1", spots=(0, 1), tip_volume=200)

  def test_no_tips(self):
    head = HeadTipTracker()
    self.assertFalse(head.has_tips)
    with self.assertRaises(NoTipError):
      head.get_tips()
    with self.assertRaises(NoTipError):
      head.aspirate(10)

  def test_add_tips(self):
    head = HeadTipTracker()
    head.add_tips(self.tips)
    self.assertTrue(head.has_tips)
    self.assertIsNone(head.tips)
    head.commit()
    self.assertEqual(head.tips, self.tips)
    with self.assertRaises(HasTipError):
      head.add_tips(self.tips)

  def test_aspirate_dispense(self):
    head = HeadTipTracker()
    head.add_tips(self.tips)
    head.aspirate(150)
    with self.assertRaises(TipCapacityError):
      head.aspirate(60)
    head.dispense(100)
    self.assertEqual(head.get_tips().volume, 50)
    with self.assertRaises(TooLittleTipVolumeError):
      head.dispense(60)

  def test_rollback(self):
    head = HeadTipTracker()
    head.add_tips(self.tips)
    head.commit()
    head.remove_tips()
    self.assertFalse(head.has_tips)
    head.rollback()
    self.assertTrue(head.has_tips)
