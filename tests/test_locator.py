import logging

import pytest
from fakes import first_container, page_html, soup, tweet_html

from feedharvest import locator
from feedharvest.errors import NoMatchFound
from feedharvest.locator import FieldCascade, Matcher


def test_prefers_tweet_articles():
    html = page_html(tweet_html(text='one'), tweet_html(text='two'), '<article>sidebar</article>')
    containers = locator.locate_record_containers(soup(html))
    assert len(containers) == 2
    assert [c.get('data-testid') for c in containers] == ['tweet', 'tweet']


def test_falls_back_to_testid_without_article():
    html = page_html('<div data-testid="tweet"><span>a</span></div>', '<article>other</article>')
    containers = locator.locate_record_containers(soup(html))
    assert len(containers) == 1
    assert containers[0].name == 'div'


def test_falls_back_to_generic_article_then_role():
    assert len(locator.locate_record_containers(soup(page_html('<article>x</article>')))) == 1
    html = page_html('<div role="article">x</div>', '<div role="article">y</div>')
    assert len(locator.locate_record_containers(soup(html))) == 2


def test_no_match_returns_empty_list():
    assert locator.locate_record_containers(soup(page_html('<div>nothing</div>'))) == []
    assert locator.locate_record_containers(None) == []


def test_probe_counts_every_pattern():
    counts = locator.probe(soup(page_html(tweet_html(), '<article>x</article>')))
    assert counts['article[data-testid="tweet"]'] == 1
    assert counts['article'] == 2
    assert counts['[role="article"]'] == 0


def test_text_cascade_falls_through():
    container = first_container('<article><div lang="en">from lang</div><span>span</span></article>')
    assert locator.TEXT.resolve(container) == 'from lang'
    container = first_container('<article><span>only span</span></article>')
    assert locator.TEXT.resolve(container) == 'only span'
    container = first_container('<article></article>')
    assert locator.TEXT.resolve(container) == ''


def test_author_from_user_name_block():
    container = first_container(tweet_html(handle='jane', name='Jane Doe'))
    assert locator.AUTHOR.resolve(container) == ('jane', 'Jane Doe')


def test_author_block_without_link():
    container = first_container('<article><div data-testid="User-Name">Jane Doe@jane</div></article>')
    assert locator.AUTHOR.resolve(container) == ('', 'Jane Doe')


def test_author_falls_back_to_profile_link():
    container = first_container('<article><a href="https://x.com/bob">Bob</a></article>')
    assert locator.AUTHOR.resolve(container) == ('bob', 'Bob')


def test_author_fallback_ignores_status_links():
    container = first_container(
        '<article><a href="/bob/status/123"><time datetime="2025-01-01T00:00:00Z">Jan 1</time></a></article>'
    )
    assert locator.AUTHOR.resolve(container) == ('', '')


def test_author_block_skips_non_profile_links():
    container = first_container(
        '<article><div data-testid="User-Name"><a href="/i/premium">Jane Doe</a>'
        '<a href="/jane">@jane</a></div></article>'
    )
    assert locator.AUTHOR.resolve(container) == ('jane', 'Jane Doe')


def test_handle_from_href():
    assert locator.handle_from_href('/jane') == 'jane'
    assert locator.handle_from_href('https://x.com/jane?ref=1') == 'jane'
    assert locator.handle_from_href('/jane/') == 'jane'
    assert locator.handle_from_href('') == ''
    assert locator.handle_from_href('/jane/status/99') == ''
    assert locator.handle_from_href('https://x.com/jane/status/99/photo/1') == ''
    assert locator.handle_from_href('/home') == ''
    assert locator.handle_from_href('/search?q=rust') == ''


def test_permalink_cascade():
    container = first_container(tweet_html(handle='jane'))
    assert locator.PERMALINK.resolve(container) == 'https://x.com/jane/status/1'
    container = first_container('<article><a href="/jane">Jane</a></article>')
    assert locator.PERMALINK.resolve(container) is None


def test_lang_cascade():
    assert locator.LANG.resolve(first_container(tweet_html())) == 'en'
    container = first_container('<article><div data-testid="tweetText">x</div><p lang="ja">y</p></article>')
    assert locator.LANG.resolve(container) == 'ja'


def test_counter_strips_non_digits():
    container = first_container(
        '<article><button data-testid="like">1,204</button>'
        '<button data-testid="retweet"></button></article>'
    )
    assert locator.LIKES.resolve(container) == 1204
    assert locator.RETWEETS.resolve(container) == 0
    assert locator.REPLIES.resolve(container) == 0


def test_counter_reads_toggled_state():
    container = first_container('<article><button data-testid="unlike">5</button></article>')
    assert locator.LIKES.resolve(container) == 5


def test_bad_timestamp_falls_back_to_default(caplog):
    container = first_container('<article><time datetime="yesterday">y</time></article>')
    with caplog.at_level(logging.WARNING):
        assert locator.TIMESTAMP.resolve(container) is None
    assert 'timestamp' in caplog.text


def test_markers():
    container = first_container(tweet_html(verified=True, social_context=True))
    assert locator.VERIFIED.resolve(container) is True
    assert locator.SOCIAL_CONTEXT.resolve(container) is True
    container = first_container(tweet_html())
    assert locator.VERIFIED.resolve(container) is False
    assert locator.SOCIAL_CONTEXT.resolve(container) is False


def test_cascade_skips_failing_reader():
    def broken(el):
        raise ValueError('boom')

    cascade = FieldCascade('demo', [Matcher('b', broken), Matcher('i', locator.read_text)], default='none')
    container = first_container('<article><b>bold</b><i>italic</i></article>')
    assert cascade.resolve(container) == 'italic'
    with pytest.raises(NoMatchFound):
        cascade.first(first_container('<article><b>bold</b></article>'))


def test_empty_state_detection():
    assert locator.has_empty_state(soup(page_html('<div data-testid="emptyState">none</div>')))
    assert not locator.has_empty_state(soup(page_html(tweet_html())))


def test_matcher_requires_reader():
    with pytest.raises(TypeError):
        Matcher('b')
