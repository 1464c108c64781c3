# =============================================
# File: tests/test_classifier.py
# Purpose: Gates that decide whether a turn gets recommendations at all
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import pytest

from app.services import classifier as c


@pytest.mark.parametrize("answer", [
    "Sorry, we don't carry swimwear at the moment.",
    "That item is currently out of stock.",
    "I'm sorry, we don't currently have that in stock",
    "Unfortunately that style is not available right now.",
    "We don’t have any tuxedos.",
])
def test_negative_availability_detected(answer):
    assert c.is_negative_availability_response(answer)

@pytest.mark.parametrize("answer", [
    "We have plenty of dresses in stock!",
    "Here are a few hoodies you might like.",
    "",
])
def test_positive_answers_not_negative(answer):
    assert not c.is_negative_availability_response(answer)


@pytest.mark.parametrize("query", [
    "What is your return policy?",
    "How long does shipping take?",
    "What are your business hours?",
    "How do I track my order?",
    "How much does shipping cost?",
    "Do you offer free shipping?",
    "How do I find my size?",
])
def test_faq_queries(query):
    assert c.is_general_info_or_faq(query, "")
    assert c.classify(query, "") == c.GATE_FAQ

@pytest.mark.parametrize("query", [
    "Do you have any hoodies?",
    "Can you recommend a dress for a wedding?",
    "What should I wear to work?",
    "Show me some jeans",
    "I'm looking for a winter jacket",
])
def test_product_queries_are_not_faq(query):
    assert not c.is_general_info_or_faq(query, "")
    assert c.is_explicit_product_request(query) or c.is_specific_product_query(query)
    assert c.classify(query, "") is None

def test_strong_faq_phrase_beats_product_words():
    assert c.is_general_info_or_faq("Do you have a return policy for dresses?", "")

def test_policy_language_in_answer_counts_as_faq():
    assert c.is_general_info_or_faq("tell me something", "Orders arrive in 3-5 business days.")

def test_availability_and_recommendation_need_a_product_noun():
    assert c.is_product_availability_query("Do you have black dresses?")
    assert not c.is_product_availability_query("Do you offer gift cards?")
    assert c.is_recommendation_query("Can you suggest a jacket?")
    assert not c.is_recommendation_query("Can you suggest a good time to visit?")

def test_specific_garment_is_whole_word():
    assert c.is_specific_product_query("any tees left?")
    assert c.is_specific_product_query("what should i wear to a wedding")
    # "bag" must not fire inside "baggage"
    assert not c.is_specific_product_query("is my baggage allowance ok")

def test_gate_order_negative_first():
    # negative answer wins even for an explicit product request
    assert c.classify("Do you have women's dresses?", "Sorry, we don't have dresses right now.") == c.GATE_NEGATIVE

def test_not_requested_for_small_talk():
    assert c.classify("hi there", "Hello! Nice to meet you.") == c.GATE_NOT_REQUESTED

def test_empty_inputs_do_not_raise():
    assert c.classify("", "") == c.GATE_NOT_REQUESTED
