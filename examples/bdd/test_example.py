"""Step definitions for features/example.feature."""

from pytest_bdd import given, parsers, scenarios, then, when

from bdd_harness.api_client import validate_response
from bdd_harness.pages import ExamplePage

scenarios('features/example.feature')


@given('I navigate to the application')
def navigate(world):
    world.navigate('/')


@when('I interact with a form')
def fill_form(world):
    ExamplePage(world.page).fill_example_input('test value')


@when('I submit the form')
def submit_form(world):
    ExamplePage(world.page).click_submit_button()


@then('I should receive a success message')
def success_message(world):
    page = ExamplePage(world.page)
    page.utils.verify_element_contains_text(page.message_element, 'Form submitted successfully')


@when(parsers.parse('I request "{endpoint}"'))
def request_endpoint(world, endpoint):
    world.data['response'] = world.api.get(endpoint)


@then(parsers.parse('the response contains "{field}"'))
def response_contains(world, field):
    validate_response(world.data['response'], [field])
