from ollama_api_proxy.responses import ErrorResponse, SuccessResponse


def test_error_response_without_code_omits_it():
    assert ErrorResponse(error="boom").to_dict() == {"error": "boom"}


def test_error_response_with_code_puts_code_first():
    body = ErrorResponse(error="boom", code=404).to_dict()
    assert body == {"code": 404, "error": "boom"}
    assert list(body) == ["code", "error"]


def test_error_response_keeps_zero_code():
    body = ErrorResponse(error="boom", code=0).to_dict()
    assert body["code"] == 0


def test_success_response_without_code_omits_it():
    assert SuccessResponse(message="done").to_dict() == {"message": "done"}


def test_success_response_with_code():
    body = SuccessResponse(message="done", code=201).to_dict()
    assert body == {"code": 201, "message": "done"}
    assert list(body) == ["code", "message"]