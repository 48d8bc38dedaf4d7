# tests/test_segmentation.py
import unittest

from services.segmentation_service import (
    ABSTRACT_MAX_CHARS,
    SectionSegmenter,
    fallback_title,
    find_anchor,
    ABSTRACT_ANCHORS,
    INTRODUCTION_ANCHORS,
)


class TestSectionSegmenter(unittest.TestCase):

    def setUp(self):
        self.segmenter = SectionSegmenter()

    def test_anchored_document(self):
        text = (
            "My Paper Title\n\nAbstract: We show X.\n\n1. Introduction\nWe study X because...\n\n"
            "2. Conclusion\nIn future work, Y.\n\nReferences\n[1]..."
        )
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "My Paper Title")
        self.assertEqual(doc.abstract, "We show X.")
        self.assertEqual(doc.introduction, "We study X because...")
        self.assertEqual(doc.conclusion, "In future work, Y.")

    def test_sections_follow_anchor_offsets(self):
        text = (
            "Title Line\nABSTRACT\nAbstract body.\nI. INTRODUCTION\nIntro body.\n"
            "V. CONCLUSIONS\nConclusion body.\nREFERENCES\n[1] Ref."
        )
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "Title Line")
        self.assertEqual(doc.abstract, "Abstract body.")
        self.assertEqual(doc.introduction, "Intro body.")
        self.assertEqual(doc.conclusion, "Conclusion body.")

    def test_positional_abstract_fallback(self):
        text = (
            "Deep Learning for Cats\n\nWe present a method for cats.\n\n"
            "1. Introduction\nCats are great."
        )
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "Deep Learning for Cats")
        self.assertEqual(doc.abstract, "We present a method for cats.")
        self.assertEqual(doc.introduction, "Cats are great.")
        self.assertEqual(doc.conclusion, "")

    def test_conclusion_requires_references(self):
        text = "Title\n\nAbstract: A.\n\n1. Introduction\nB.\n\n5. Conclusion\nC."
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.conclusion, "")
        self.assertEqual(doc.introduction, "B.")

    def test_no_anchors_yields_empty_sections(self):
        text = "short\nA line that is definitely long enough to be a title\nmore text"
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.abstract, "")
        self.assertEqual(doc.introduction, "")
        self.assertEqual(doc.conclusion, "")
        self.assertEqual(doc.title, "A line that is definitely long enough to be a title")

    def test_title_noise_is_stripped(self):
        text = "arXiv:2101.00001v2 [cs.CL] 1 Jan 2021\nReal Title Here\nAbstract\nBody text."
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "Real Title Here")

    def test_abstract_is_capped(self):
        text = "Title\nAbstract: " + ("word " * 2000) + "\n1. Introduction\nIntro."
        doc = self.segmenter.segment(text)

        self.assertLessEqual(len(doc.abstract), ABSTRACT_MAX_CHARS)

    def test_empty_and_invalid_input(self):
        self.assertEqual(self.segmenter.segment("").title, "")
        with self.assertRaises(TypeError):
            self.segmenter.segment(None)

    def test_deterministic(self):
        text = "Title\n\nAbstract: A.\n\n1. Introduction\nB."
        self.assertEqual(self.segmenter.segment(text), self.segmenter.segment(text))

    def test_abstract_word_in_body_prose_is_not_an_anchor(self):
        text = (
            "My Paper Title\n\nWe show X.\n\n1. Introduction\nWe build an abstract syntax tree.\n\n"
            "2. Conclusion\nIn future work, Y.\n\nReferences\n[1]..."
        )
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "My Paper Title")
        self.assertEqual(doc.abstract, "We show X.")
        self.assertEqual(doc.introduction, "We build an abstract syntax tree.")
        self.assertEqual(doc.conclusion, "In future work, Y.")

    def test_title_starting_with_abstract_keyword(self):
        text = (
            "Abstract Interpretation of Neural Networks\n\nAbstract\nWe show X.\n\n"
            "1. Introduction\nWe study X."
        )
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "Abstract Interpretation of Neural Networks")
        self.assertEqual(doc.abstract, "We show X.")
        self.assertEqual(doc.introduction, "We study X.")

    def test_title_starting_with_introduction_keyword(self):
        text = "Introduction to Graph Theory\n\nSummary: We survey graphs.\n\n1. Introduction\nGraphs."
        doc = self.segmenter.segment(text)

        self.assertEqual(doc.title, "Introduction to Graph Theory")
        self.assertEqual(doc.abstract, "We survey graphs.")
        self.assertEqual(doc.introduction, "Graphs.")


def test_find_anchor_respects_floor():
    text = "Introduction\nold\nAbstract\nx\nIntroduction\nnew"
    abstract = find_anchor(text, ABSTRACT_ANCHORS)
    intro = find_anchor(text, INTRODUCTION_ANCHORS, abstract.end)

    assert intro.start == text.rindex("Introduction")


def test_find_anchor_respects_limit():
    text = "Title\n\nBody.\n\nAbstract: late"
    assert find_anchor(text, ABSTRACT_ANCHORS, limit=text.index("Abstract")) is None
    assert find_anchor(text, ABSTRACT_ANCHORS).start == text.index("Abstract")


def test_fallback_title_skips_short_and_noise_lines():
    text = "12\nPage 3 of 10\nshort\nA sufficiently long title line"
    assert fallback_title(text) == "A sufficiently long title line"
