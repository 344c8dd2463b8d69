"""Tests for the per-cycle summary."""

import unittest

from plugin_updater.updater.summary import CycleSummary


class TestCycleSummary(unittest.TestCase):

    def test_names_listed_once(self):
        summary = CycleSummary()
        summary.mark_checked("greeter")
        summary.mark_checked("greeter")
        summary.mark_checked("admin")
        summary.mark_updated("greeter")
        summary.mark_updated("greeter")

        self.assertEqual(summary.total_checked, 2)
        self.assertEqual(summary.total_updated, 1)

        message = summary.report()
        self.assertEqual(message.count("greeter"), 2)  # once per list
        self.assertIn("Checked 2 component(s): greeter, admin", message)
        self.assertIn("Updated 1 component(s): greeter", message)
        self.assertIn("restart", message)

    def test_report_resets(self):
        summary = CycleSummary()
        summary.mark_checked("greeter")
        summary.report()

        self.assertEqual(summary.total_checked, 0)
        self.assertEqual(summary.total_updated, 0)
        self.assertEqual(summary.checked, [])
        self.assertEqual(summary.updated, [])

    def test_up_to_date_message(self):
        summary = CycleSummary()
        summary.mark_checked("greeter")
        message = summary.report()
        self.assertIn("All components are up to date", message)
        self.assertNotIn("restart", message)

    def test_empty_cycle_reports_nothing(self):
        self.assertIsNone(CycleSummary().report())
