"""BDD tests for the buyer checkout."""

from pytest_bdd import scenarios

scenarios("features/checkout.feature")
