import json
from types import SimpleNamespace
from unittest.mock import MagicMock

from openai import OpenAIError

from factory_erp.services.ai_service import (
    AIService,
    MSG_EMPTY,
    MSG_NO_KEY,
    MSG_UNAVAILABLE,
)


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_no_api_key_skips_the_call(container):
    client = MagicMock()
    service = AIService(api_key=None, client=client)
    result = service.analyze_business_data([], container.transaction_repo.load(), 'FINANCE')
    assert result == MSG_NO_KEY
    client.chat.completions.create.assert_not_called()


def test_finance_briefing(container):
    client = MagicMock()
    client.chat.completions.create.return_value = _response('## 财务简报')
    service = AIService(api_key='k', model='test-model', client=client)

    result = service.analyze_business_data(
        container.order_repo.load(), container.transaction_repo.load(), 'FINANCE')

    assert result == '## 财务简报'
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs['model'] == 'test-model'
    prompt = kwargs['messages'][0]['content']
    assert '财务顾问' in prompt
    assert '尚品家居订单首款' in prompt


def test_operations_prompt_uses_last_twenty_orders(container):
    for i in range(25):
        container.order_service.create_order(
            f'客户{i:02d}', [{'product_name': '简约茶几', 'quantity': 1}], order_id=f'T-{i:02d}')
    orders = container.order_repo.load()
    prompt = AIService(api_key='k').build_prompt(orders, [], 'OPERATIONS')

    data = json.loads(prompt.split('数据: ', 1)[1].split('\n', 1)[0])
    assert len(data) == 20
    assert data[-1]['id'] == orders[-1].id
    assert '生产运营' in prompt


def test_client_error_is_reported_as_unavailable(caplog):
    client = MagicMock()
    client.chat.completions.create.side_effect = OpenAIError('boom')
    service = AIService(api_key='k', client=client)
    assert service.analyze_business_data([], [], 'FINANCE') == MSG_UNAVAILABLE
    assert 'AI analysis failed' in caplog.text


def test_empty_answer(caplog):
    client = MagicMock()
    client.chat.completions.create.return_value = _response('')
    assert AIService(api_key='k', client=client).analyze_business_data([], [], 'OPERATIONS') == MSG_EMPTY


def test_unexpected_client_error_is_reported_as_unavailable(caplog):
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError('bad endpoint')
    service = AIService(api_key='k', client=client)
    assert service.analyze_business_data([], [], 'OPERATIONS') == MSG_UNAVAILABLE
    assert 'AI analysis failed' in caplog.text


def test_bad_base_url_does_not_escape(monkeypatch):
    def broken_client(**kwargs):
        raise ValueError('invalid base_url')

    monkeypatch.setattr('factory_erp.services.ai_service.OpenAI', broken_client)
    service = AIService(api_key='k', base_url='::not a url::')
    assert service.analyze_business_data([], [], 'FINANCE') == MSG_UNAVAILABLE
