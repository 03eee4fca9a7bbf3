import unittest

from resume_ai_edit.matching.candidates import build_candidates, index_profiles
from resume_ai_edit.matching.deterministic import (
    find_explicit_mention,
    is_locked_requirement,
    is_years_of_experience_requirement,
)

from tests.support import document, profiles_for, requirement


def _candidates(doc):
    return build_candidates(doc, index_profiles(profiles_for(doc)))


class DeterministicResolverTests(unittest.TestCase):
    def test_tool_mentioned_in_bullet(self):
        doc = document(experience=[["Built data pipelines in Python"]])
        path = find_explicit_mention(requirement("Python"), _candidates(doc))
        self.assertEqual(path, "experience[0].bullets[0]")

    def test_alias_match(self):
        doc = document(experience=[["Shipped dashboards"], ["Deployed services on AWS Lambda"]])
        req = requirement("Amazon Web Services", aliases=["AWS"], type="platform")
        self.assertEqual(find_explicit_mention(req, _candidates(doc)), "experience[1].bullets[0]")

    def test_first_candidate_in_order_wins(self):
        doc = document(experience=[["Wrote SQL reports"]], skills=["SQL"])
        self.assertEqual(find_explicit_mention(requirement("SQL"), _candidates(doc)), "experience[0].bullets[0]")

    def test_years_requirement_satisfied_by_larger_mention(self):
        doc = document(experience=[["3 years of Spark tuning", "Over 6 years building data platforms"]])
        req = requirement(
            "Senior data engineer",
            type="responsibility",
            jd_evidence=["5+ years of experience with Spark"],
        )
        self.assertTrue(is_years_of_experience_requirement(req))
        self.assertEqual(find_explicit_mention(req, _candidates(doc)), "experience[0].bullets[1]")

    def test_years_requirement_not_met(self):
        doc = document(experience=[["Built ETL pipelines", "3 years of Airflow"]])
        req = requirement("5 years of data engineering experience", type="responsibility")
        self.assertIsNone(find_explicit_mention(req, _candidates(doc)))

    def test_higher_degree_satisfies_lower_requirement(self):
        doc = document(
            experience=[["Master's degree holder mentoring interns"]],
            education=[{"degree": "Master's degree", "field": "Computer Science"}],
        )
        req = requirement("Bachelor's degree in Computer Science", type="education")
        self.assertEqual(find_explicit_mention(req, _candidates(doc)), "education[0].degree")

    def test_generic_degree_requirement_accepts_any_degree(self):
        doc = document(education=[{"degree": "Associate Degree", "field": "Networking"}])
        req = requirement("Degree in a related field", type="education")
        self.assertEqual(find_explicit_mention(req, _candidates(doc)), "education[0].degree")

    def test_lower_degree_does_not_satisfy(self):
        doc = document(education=[{"degree": "Bachelor of Arts", "field": "History"}])
        req = requirement("Master's degree", type="education")
        self.assertIsNone(find_explicit_mention(req, _candidates(doc)))

    def test_subtitle_can_evidence_degree(self):
        doc = document(subtitle="PhD Researcher")
        req = requirement("Master's degree", type="education")
        self.assertEqual(find_explicit_mention(req, _candidates(doc)), "metadata.subtitle")

    def test_no_match(self):
        doc = document(experience=[["Docker and ECS deployments"]])
        self.assertIsNone(find_explicit_mention(requirement("Kubernetes"), _candidates(doc)))


class LockedRequirementTests(unittest.TestCase):
    def test_education_is_locked(self):
        self.assertTrue(is_locked_requirement(requirement("Bachelor's degree", type="education")))

    def test_years_phrase_locks_any_type(self):
        self.assertTrue(is_locked_requirement(requirement("5 years of data engineering experience", type="responsibility")))
        self.assertTrue(is_locked_requirement(requirement("Python", aliases=["3+ yrs Python"])))

    def test_plain_tool_is_not_locked(self):
        self.assertFalse(is_locked_requirement(requirement("Python")))


if __name__ == "__main__":
    unittest.main()
