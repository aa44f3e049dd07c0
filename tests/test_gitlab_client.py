"""
Tests for GitLabClient.create_pipeline with a mocked requests session.
"""

from unittest.mock import MagicMock

import pytest
import requests

from mirrorpull.exit_codes import TriggerError
from mirrorpull.infra.gitlab_client import GitLabClient, PipelineInfo


def make_response(status_code=201, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestCreatePipeline:

    def test_posts_to_project_pipeline(self, session):
        session.post.return_value = make_response(json_data={
            'id': 7, 'status': 'created', 'ref': 'master',
            'web_url': 'https://gitlab.example.com/group/app/-/pipelines/7',
        })
        client = GitLabClient("https://gitlab.example.com/", token="secret", session=session)

        info = client.create_pipeline("group%2Fapp", "master")

        assert info == PipelineInfo(7, 'created', 'master', 'https://gitlab.example.com/group/app/-/pipelines/7')
        args, kwargs = session.post.call_args
        assert args[0] == "https://gitlab.example.com/api/v4/projects/group%2Fapp/pipeline"
        assert kwargs['params'] == {'ref': 'master'}
        assert kwargs['headers']['PRIVATE-TOKEN'] == "secret"
        assert kwargs['timeout'] == 30

    def test_unencoded_namespace_is_encoded(self, session):
        session.post.return_value = make_response(json_data={'id': 1})
        GitLabClient("https://gitlab.example.com", session=session).create_pipeline("group/app", "main")
        assert session.post.call_args[0][0].endswith("/projects/group%2Fapp/pipeline")

    def test_no_token_header_without_token(self, session):
        session.post.return_value = make_response(json_data={'id': 1})
        GitLabClient("https://gitlab.example.com", session=session).create_pipeline("1", "main")
        assert 'PRIVATE-TOKEN' not in session.post.call_args[1]['headers']

    def test_api_error_raises_with_message(self, session):
        session.post.return_value = make_response(
            status_code=400, json_data={'message': {'base': ['Reference not found']}}
        )
        client = GitLabClient("https://gitlab.example.com", token="t", session=session)

        with pytest.raises(TriggerError) as exc_info:
            client.create_pipeline("group%2Fapp", "nope")

        assert exc_info.value.status_code == 400
        assert "Reference not found" in str(exc_info.value)

    def test_api_error_with_plain_body(self, session):
        session.post.return_value = make_response(status_code=502, text="Bad Gateway")
        with pytest.raises(TriggerError) as exc_info:
            GitLabClient("https://gitlab.example.com", session=session).create_pipeline("1", "main")
        assert "Bad Gateway" in str(exc_info.value)

    def test_transport_error_raises(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TriggerError) as exc_info:
            GitLabClient("https://gitlab.example.com", session=session).create_pipeline("1", "main")
        assert exc_info.value.status_code is None

    def test_empty_success_body(self, session):
        session.post.return_value = make_response(status_code=201)
        info = GitLabClient("https://gitlab.example.com", session=session).create_pipeline("1", "main")
        assert info.id is None
        assert info.ref == "main"

    def test_api_error_with_non_object_body(self, session):
        session.post.return_value = make_response(status_code=400, json_data=["bad"], text='["bad"]')
        with pytest.raises(TriggerError) as exc_info:
            GitLabClient("https://gitlab.example.com", session=session).create_pipeline("1", "main")
        assert exc_info.value.status_code == 400
        assert '["bad"]' in str(exc_info.value)
