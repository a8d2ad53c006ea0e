from openapi_synth.model.endpoint import ExampleSource
from openapi_synth.parser.docs import parse_doc_comment


class TestParseDocComment:
    def test_summary_remarks_and_params(self):
        block = parse_doc_comment(
            "<summary>Gets an order.</summary>"
            "<remarks>Looks the order up by id.</remarks>"
            '<param name="id">Order identifier</param>'
        )
        assert block.summary == "Gets an order."
        assert block.description == "Looks the order up by id."
        assert block.parameter_descriptions == {"id": "Order identifier"}

    def test_examples(self):
        block = parse_doc_comment(
            '<example name="Found" statusCode="200"><code>{"id": 1}</code></example>'
            '<example request="true">{"total": 5}</example>'
        )
        response, request = block.examples
        assert response.name == "Found"
        assert response.value == '{"id": 1}'
        assert response.status_code == 200
        assert response.is_request is False
        assert response.source == ExampleSource.DOCUMENTATION
        assert request.is_request is True
        assert request.name == "Example"

    def test_non_numeric_status_keeps_default(self):
        block = parse_doc_comment('<example statusCode="ok">{}</example>')
        assert block.examples[0].status_code == 200

    def test_empty_example_skipped(self):
        assert parse_doc_comment("<example>  </example>").examples == []

    def test_member_wrapper(self):
        block = parse_doc_comment('<member name="M:Orders.Get"><summary>Get</summary></member>')
        assert block.summary == "Get"

    def test_malformed_markup(self, caplog):
        block = parse_doc_comment("<summary>Unclosed")
        assert block.summary is None
        assert block.examples == []
        assert "malformed" in caplog.text

    def test_empty(self):
        assert parse_doc_comment(None).summary is None
        assert parse_doc_comment("   ").parameter_descriptions == {}
