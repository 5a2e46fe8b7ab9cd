# tests/test_spf.py

"""Tests for the SPF analyzer."""

import unittest
from modules.profile import SenderProfile
from modules.spf import SPF, analyze_spf, count_lookups
from tests.helpers import cname, txt

PROFILE = SenderProfile(name="Target", spf_include="target.example", dkim_selector="sel")


def spf_for(*records, profile=PROFILE):
    return analyze_spf([txt("example.com.", f'"{r}"') for r in records], profile)


class TestSPFRecords(unittest.TestCase):
    """Record extraction and the empty case."""

    def test_no_answers(self):
        spf = analyze_spf([], PROFILE)
        self.assertFalse(spf.exists)
        self.assertEqual(spf.records, [])
        self.assertEqual(spf.per_record, [])
        self.assertFalse(spf.has_multiple)
        self.assertEqual(spf.errors, [])
        self.assertEqual(spf.warnings, [])
        self.assertIsNone(spf.total_lookups)
        self.assertIsNone(spf.recommendation)

    def test_non_spf_txt_ignored(self):
        spf = analyze_spf([txt("example.com.", '"google-site-verification=abc"')], PROFILE)
        self.assertFalse(spf.exists)
        self.assertEqual(spf.warnings, [])

    def test_non_txt_answers_ignored(self):
        spf = analyze_spf([cname("example.com.", "other.example.")], PROFILE)
        self.assertFalse(spf.exists)

    def test_resolver_order_preserved(self):
        spf = spf_for("v=spf1 mx ~all", "v=spf1 a ~all")
        self.assertEqual(spf.records, ["v=spf1 mx ~all", "v=spf1 a ~all"])
        self.assertEqual([i.index for i in spf.per_record], [1, 2])

    def test_starter_record(self):
        self.assertEqual(analyze_spf([], PROFILE).starter_record, "v=spf1 include:target.example ~all")


class TestSPFTerminator(unittest.TestCase):

    def test_softfail_has_no_warning(self):
        spf = spf_for("v=spf1 include:target.example ~all")
        self.assertEqual(spf.warnings, [])
        self.assertEqual(spf.all_mechanism, "~all")

    def test_hardfail_gets_one_warning(self):
        spf = spf_for("v=spf1 include:target.example -all")
        self.assertEqual(len(spf.warnings), 1)
        self.assertIn('"-all"', spf.warnings[0])
        self.assertIn("~all", spf.warnings[0])

    def test_neutral_named_in_warning(self):
        spf = spf_for("v=spf1 include:target.example ?all")
        self.assertIn('"?all"', spf.warnings[0])

    def test_missing_terminator(self):
        spf = spf_for("v=spf1 include:target.example")
        self.assertEqual(len(spf.warnings), 1)
        self.assertIn("missing a terminator", spf.warnings[0])
        self.assertIsNone(spf.all_mechanism)

    def test_bare_all_counts_as_terminator(self):
        spf = spf_for("v=spf1 include:target.example all")
        self.assertEqual(spf.all_mechanism, "all")
        self.assertIn('"all"', spf.warnings[0])


class TestSPFLookups(unittest.TestCase):

    def test_count_lookups(self):
        counts = count_lookups("v=spf1 include:a.com include:b.com a mx ~all")
        self.assertEqual(sum(counts.values()), 4)
        self.assertEqual(counts["include"], 2)
        self.assertEqual(counts["a"], 1)
        self.assertEqual(counts["mx"], 1)

    def test_count_lookups_with_arguments(self):
        counts = count_lookups("v=spf1 a:web.example.com mx:mail.example.com/24 ptr exists:%{i}.x.com -all")
        self.assertEqual(counts, {"include": 0, "a": 1, "mx": 1, "ptr": 1, "exists": 1})

    def test_ip_literals_cost_nothing(self):
        counts = count_lookups("v=spf1 ip4:192.0.2.1 ip6:2001:db8::1 ~all")
        self.assertEqual(sum(counts.values()), 0)

    def test_four_lookups_no_warning(self):
        spf = spf_for("v=spf1 include:target.example include:b.com a mx ~all")
        self.assertEqual(spf.total_lookups, 4)
        self.assertEqual(spf.warnings, [])

    def test_five_lookups_no_warning(self):
        spf = spf_for("v=spf1 include:target.example include:b.com include:c.com a mx ~all")
        self.assertEqual(spf.total_lookups, 5)
        self.assertEqual(spf.warnings, [])

    def test_six_lookups_moderate(self):
        spf = spf_for("v=spf1 include:target.example include:b.com include:c.com include:d.com a mx ~all")
        self.assertEqual(spf.total_lookups, 6)
        self.assertEqual(len(spf.warnings), 1)
        self.assertIn("Moderate", spf.warnings[0])
        self.assertIn("4 includes, 1 a, 1 mx", spf.warnings[0])

    def test_eight_lookups_moderate(self):
        includes = " ".join(f"include:s{i}.example" for i in range(6))
        spf = spf_for(f"v=spf1 include:target.example {includes} mx ~all")
        self.assertEqual(spf.total_lookups, 8)
        self.assertEqual(len(spf.warnings), 1)
        self.assertIn("Moderate", spf.warnings[0])
        self.assertNotIn("High", spf.warnings[0])
        self.assertIn("7 includes, 0 a, 1 mx", spf.warnings[0])

    def test_nine_lookups_high(self):
        includes = " ".join(f"include:s{i}.example" for i in range(7))
        spf = spf_for(f"v=spf1 include:target.example {includes} mx ~all")
        self.assertEqual(spf.total_lookups, 9)
        self.assertEqual(len(spf.warnings), 1)
        self.assertIn("High DNS lookup count", spf.warnings[0])
        self.assertIn("8 includes, 0 a, 1 mx", spf.warnings[0])
        self.assertIn("nested", spf.warnings[0])

    def test_breakdown_lists_ptr_and_exists(self):
        spf = spf_for("v=spf1 include:target.example a mx ptr exists:x.com a:b.com ~all")
        self.assertIn("1 ptr", spf.warnings[0])
        self.assertIn("1 exists", spf.warnings[0])


class TestSPFTarget(unittest.TestCase):

    def test_target_authorized(self):
        spf = spf_for("v=spf1 include:target.example ~all")
        self.assertTrue(spf.has_target)
        self.assertTrue(spf.per_record[0].is_target_only)
        self.assertIsNone(spf.recommendation)

    def test_target_match_is_exact(self):
        spf = spf_for("v=spf1 include:nottarget.example ~all")
        self.assertFalse(spf.has_target)

    def test_target_missing_recommends_insertion(self):
        spf = spf_for("v=spf1 include:_spf.google.com -all")
        self.assertFalse(spf.has_target)
        self.assertIn("v=spf1 include:_spf.google.com include:target.example -all", spf.recommendation)

    def test_target_missing_without_terminator(self):
        spf = spf_for("v=spf1 mx")
        self.assertIn("v=spf1 mx include:target.example ~all", spf.recommendation)

    def test_not_target_only_with_other_mechanisms(self):
        spf = spf_for("v=spf1 include:target.example mx ~all")
        self.assertTrue(spf.per_record[0].has_target_include)
        self.assertFalse(spf.per_record[0].is_target_only)


class TestSPFMultiple(unittest.TestCase):

    def test_multiple_records_single_error(self):
        spf = spf_for("v=spf1 include:a.com ~all", "v=spf1 include:target.example -all")
        self.assertTrue(spf.has_multiple)
        self.assertEqual(len(spf.errors), 1)
        self.assertEqual(
            spf.errors[0],
            "Multiple SPF records detected (2). Only one is allowed; this invalidates all of them.",
        )

    def test_multiple_records_skip_single_record_checks(self):
        spf = spf_for("v=spf1 a a a a a a a a a a", "v=spf1 include:target.example -all")
        self.assertEqual(spf.warnings, [])
        self.assertIsNone(spf.total_lookups)
        self.assertIsNone(spf.all_mechanism)

    def test_keep_record_with_target_and_legacy(self):
        spf = spf_for(
            "v=spf1 include:target.example ~all",
            "v=spf1 include:_spf.google.com include:target.example ~all",
            "v=spf1 mx ~all",
        )
        self.assertTrue(spf.per_record[0].is_target_only)
        self.assertFalse(spf.per_record[1].is_target_only)
        self.assertIn("Keep record 2", spf.recommendation)
        self.assertIn("delete record(s) 1, 3", spf.recommendation)
        self.assertIn("preserves existing services", spf.recommendation)

    def test_merge_when_no_keepable_record(self):
        spf = spf_for(
            "v=spf1 include:target.example ~all",
            "v=spf1 include:_spf.google.com ip4:192.0.2.1 a mx -all",
        )
        self.assertIn(
            "v=spf1 include:target.example include:_spf.google.com ip4:192.0.2.1 a mx ~all",
            spf.recommendation,
        )

    def test_has_target_over_all_records(self):
        spf = spf_for("v=spf1 mx ~all", "v=spf1 include:target.example ~all")
        self.assertTrue(spf.has_target)


class TestSPFOutput(unittest.TestCase):

    def test_to_dict(self):
        d = spf_for("v=spf1 include:target.example mx ~all").to_dict()
        self.assertTrue(d["exists"])
        self.assertEqual(d["total_lookups"], 2)
        self.assertEqual(d["lookup_counts"]["mx"], 1)
        self.assertEqual(d["per_record"][0]["index"], 1)
        self.assertEqual(d["errors"], [])

    def test_default_profile(self):
        spf = SPF([txt("example.com.", '"v=spf1 include:spfa.mailendo.com ~all"')])
        self.assertTrue(spf.has_target)
        self.assertIn("Target Authorized: True", str(spf))


if __name__ == "__main__":
    unittest.main()
