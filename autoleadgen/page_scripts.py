"""Page scripts evaluated through the page driver.

Scripts are opaque to the pipelines; only the shape of what they return is
relied on. Extraction scripts return arrays of string-keyed records, action
scripts return a short status string such as ``'clicked'`` or ``'not_found'``.
"""

LOGIN_STATUS = """
(function() {
    const signedIn = document.querySelector('.feed-shared-update-v2') ||
                     document.querySelector('.global-nav__me-photo') ||
                     document.querySelector('.global-nav__me');
    const signInForm = document.querySelector('.login__form') ||
                       document.querySelector('[data-id="sign-in-form__submit-btn"]');
    if (signedIn) return 'logged_in';
    if (signInForm) return 'not_logged_in';
    return 'unknown';
})();
"""

# -- search results ----------------------------------------------------------

SEARCH_RESULTS = """
(function() {
    const out = [];
    const seen = new Set();
    for (const link of document.querySelectorAll('a[href*="linkedin.com/in/"]')) {
        let url = link.href;
        if (url.includes('google.com/url')) {
            const params = new URLSearchParams(url.split('?')[1]);
            url = params.get('url') || params.get('q') || url;
        }
        url = url.split('?')[0];
        const titleEl = link.querySelector('h3') || link.closest('div')?.querySelector('h3');
        if (!titleEl) continue;
        let name = titleEl.textContent || '';
        if (name.includes(' - ')) name = name.split(' - ')[0];
        if (name.includes(' · ')) name = name.split(' · ').pop();
        const parts = name.replace('LinkedIn', '').trim().split(' ').filter(p => p.length > 0);
        if (parts.length < 1) continue;
        const key = url.toLowerCase();
        if (seen.has(key)) continue;
        seen.add(key);
        const desc = link.closest('div')?.parentElement?.querySelector('[data-sncf], .VwiC3b');
        out.push({
            firstName: parts[0],
            lastName: parts.slice(1).join(' '),
            profileURL: url,
            title: (desc?.textContent || '').substring(0, 150)
        });
    }
    return out;
})();
"""

_NEXT_LINK = """document.querySelector('a#pnnext') ||
                     document.querySelector('a[aria-label="Next page"]') ||
                     document.querySelector('a[aria-label="Next"]')"""

HAS_NEXT_PAGE = """
(function() {
    const next = %s;
    return next ? 'yes' : 'no';
})();
""" % _NEXT_LINK

CLICK_NEXT_PAGE = """
(function() {
    const next = %s;
    if (next) { next.click(); return 'clicked'; }
    return 'not_found';
})();
""" % _NEXT_LINK

# -- profile -----------------------------------------------------------------

PROFILE = """
(function() {
    const data = {};
    const text = el => el?.textContent?.trim() || null;
    data.headline = text(document.querySelector('.text-body-medium.break-words'));
    data.location = text(document.querySelector('.text-body-small.inline.t-black--light.break-words'));
    const about = document.querySelector('#about')?.closest('section')?.querySelector('.display-flex.full-width');
    data.about = about ? (about.textContent || '').trim().substring(0, 200) || null : null;
    const exp = document.querySelector('#experience')?.closest('section')?.querySelector('.display-flex.flex-column.full-width');
    if (exp) {
        data.currentRole = text(exp.querySelector('.display-flex.align-items-center.mr1.t-bold span'));
        data.currentCompany = (text(exp.querySelector('.t-14.t-normal span')) || '').split(' · ')[0] || null;
    }
    const edu = document.querySelector('#education')?.closest('section')?.querySelector('.display-flex.flex-column.full-width');
    if (edu) {
        const school = text(edu.querySelector('.hoverable-link-text.t-bold span')) || '';
        const degree = text(edu.querySelector('.t-14.t-normal span')) || '';
        data.education = [school, degree].filter(s => s).join(' - ') || null;
    }
    data.connectionDegree = text(document.querySelector('.dist-value'));
    for (const span of document.querySelectorAll('span.t-bold')) {
        if (span.nextElementSibling?.textContent?.includes('follower')) {
            data.followerCount = span.textContent?.trim();
            break;
        }
    }
    return data;
})();
"""

# -- messaging ---------------------------------------------------------------

CLICK_MESSAGE_BUTTON = """
(function() {
    const candidates = document.querySelectorAll(
        'button[aria-label*="Message"], a[aria-label*="Message"], .message-anywhere-button');
    for (const el of candidates) {
        const label = (el.getAttribute('aria-label') || el.textContent || '').toLowerCase();
        if (label.includes('message')) { el.click(); return 'clicked'; }
    }
    for (const btn of document.querySelectorAll('button')) {
        if ((btn.textContent || '').trim().toLowerCase() === 'message') { btn.click(); return 'clicked'; }
    }
    return 'not_found';
})();
"""

_EDITOR = """document.querySelector('.msg-form__contenteditable') ||
                   document.querySelector('.msg-form__message-texteditor') ||
                   document.querySelector('[role="textbox"][aria-label*="message"]') ||
                   document.querySelector('.msg-form__textarea')"""

MESSAGE_DIALOG_OPEN = """
(function() {
    return (%s) ? 'found' : 'not_found';
})();
""" % _EDITOR

_TYPE_MESSAGE = """
(function() {
    const editor = %s;
    if (!editor) return 'not_found';
    editor.focus();
    if (editor.tagName === 'DIV' || editor.getAttribute('contenteditable') === 'true') {
        editor.innerHTML = '<p>__TEXT__</p>';
    } else {
        editor.value = '__TEXT__';
    }
    for (const type of ['input', 'change']) {
        editor.dispatchEvent(new Event(type, { bubbles: true, cancelable: true }));
    }
    editor.dispatchEvent(new KeyboardEvent('keyup', { bubbles: true, cancelable: true }));
    return 'typed';
})();
""" % _EDITOR

CLICK_SEND = """
(function() {
    const selectors = ['.msg-form__send-button', 'button.msg-form__send-btn', 'button[aria-label="Send"]'];
    for (const selector of selectors) {
        const btn = document.querySelector(selector);
        if (btn && !btn.disabled) { btn.click(); return 'clicked'; }
    }
    for (const btn of document.querySelectorAll('button')) {
        if ((btn.textContent || '').trim().toLowerCase() === 'send' && !btn.disabled) { btn.click(); return 'clicked'; }
    }
    return 'not_found';
})();
"""

VERIFY_SENT = """
(function() {
    const editor = document.querySelector('.msg-form__contenteditable');
    if (editor && (editor.textContent || editor.innerText || '').trim() === '') return 'sent';
    const error = document.querySelector('.msg-form__error');
    if (error && error.textContent) return 'error:' + error.textContent.trim();
    if (document.querySelector('.artdeco-toast-item--success')) return 'sent';
    return 'unknown';
})();
"""

# -- engagement --------------------------------------------------------------

OPEN_REACTIONS = """
(function() {
    const btn = document.querySelector('.social-details-social-counts__reactions-count') ||
                document.querySelector('[data-control-name="reactions_detail"]') ||
                document.querySelector('button[aria-label*="reactions"]');
    if (btn) { btn.click(); return 'clicked'; }
    return 'not_found';
})();
"""

REACTORS = """
(function() {
    const out = [];
    for (const item of document.querySelectorAll('.social-details-reactors-tab-body-list-item')) {
        const nameEl = item.querySelector('.artdeco-entity-lockup__title');
        const linkEl = item.querySelector('a[href*="/in/"]');
        if (!nameEl || !linkEl) continue;
        out.push({
            name: nameEl.innerText?.trim() || '',
            headline: item.querySelector('.artdeco-entity-lockup__subtitle')?.innerText?.trim() || null,
            profileURL: linkEl.href.split('?')[0],
            connectionDegree: item.querySelector('.artdeco-entity-lockup__degree')?.innerText?.trim() || null
        });
    }
    return out;
})();
"""

SCROLL_MODAL = """
(function() {
    const modal = document.querySelector('.artdeco-modal__content') ||
                  document.querySelector('[role="dialog"] .scaffold-finite-scroll__content');
    if (modal) { modal.scrollTop = modal.scrollHeight; return 'scrolled'; }
    return 'not_found';
})();
"""

CLOSE_MODAL = """
(function() {
    const btn = document.querySelector('.artdeco-modal__dismiss') ||
                document.querySelector('[aria-label="Dismiss"]');
    if (btn) { btn.click(); return 'closed'; }
    return 'not_found';
})();
"""

EXPAND_COMMENTS = """
(function() {
    const more = document.querySelector('.comments-comments-list__load-more-comments-button');
    if (more) { more.click(); return 'clicked'; }
    return 'not_found';
})();
"""

COMMENTERS = """
(function() {
    const out = [];
    for (const item of document.querySelectorAll('.comments-comment-item, .comments-comment-entity')) {
        const nameEl = item.querySelector('.comments-post-meta__name-text');
        const linkEl = item.querySelector('a[href*="/in/"]');
        if (!nameEl || !linkEl) continue;
        out.push({
            name: nameEl.innerText?.trim() || '',
            headline: item.querySelector('.comments-post-meta__headline')?.innerText?.trim() || null,
            profileURL: linkEl.href.split('?')[0],
            commentText: item.querySelector('.comments-comment-item__main-content')?.innerText?.trim() || null,
            connectionDegree: item.querySelector('.dist-value')?.innerText?.trim() || null
        });
    }
    return out;
})();
"""

SCROLL_PAGE = "window.scrollBy(0, 500); 'scrolled';"

# -- post content ------------------------------------------------------------

LINKEDIN_POST = """
(function() {
    const count = (el) => el ? (parseInt((el.innerText || el.textContent || '').replace(/[^0-9]/g, '')) || 0) : 0;
    const body = document.querySelector('.feed-shared-update-v2__description') ||
                 document.querySelector('.update-components-text') ||
                 document.querySelector('[data-test-id="main-feed-activity-card__commentary"]') ||
                 document.querySelector('.feed-shared-inline-show-more-text');
    const author = document.querySelector('.update-components-actor__name span') ||
                   document.querySelector('.feed-shared-actor__name span') ||
                   document.querySelector('.update-components-actor__title span');
    const headline = document.querySelector('.update-components-actor__description') ||
                     document.querySelector('.feed-shared-actor__description') ||
                     document.querySelector('.update-components-actor__subtitle');
    const link = document.querySelector('.update-components-actor__container-link') ||
                 document.querySelector('.feed-shared-actor__container-link') ||
                 document.querySelector('a[href*="/in/"]');
    return {
        content: body?.innerText?.trim() || null,
        authorName: author?.innerText?.trim() || null,
        authorHeadline: headline?.innerText?.trim() || null,
        authorProfileURL: link?.href || null,
        likeCount: count(document.querySelector('.social-details-social-counts__reactions-count') ||
                         document.querySelector('[data-test-id="social-actions__reactions"]')),
        commentCount: count(document.querySelector('.social-details-social-counts__comments') ||
                            document.querySelector('[data-test-id="social-actions__comments"]')),
        repostCount: count(document.querySelector('.social-details-social-counts__item--reposts span'))
    };
})();
"""

TWITTER_POST = """
(function() {
    const data = {
        content: document.querySelector('[data-testid="tweetText"]')?.innerText?.trim() || null,
        authorName: document.querySelector('[data-testid="User-Name"] div span')?.innerText?.trim() || null
    };
    const stats = document.querySelectorAll('[data-testid="app-text-transition-container"]');
    if (stats.length >= 3) {
        data.commentCount = parseInt(stats[0].textContent.replace(/[^0-9]/g, '')) || 0;
        data.repostCount = parseInt(stats[1].textContent.replace(/[^0-9]/g, '')) || 0;
        data.likeCount = parseInt(stats[2].textContent.replace(/[^0-9]/g, '')) || 0;
    }
    return data;
})();
"""

WEBSITE_CONTENT = """
(function() {
    const article = document.querySelector('article') ||
                    document.querySelector('[role="main"]') ||
                    document.querySelector('.post-content') ||
                    document.querySelector('.article-content') ||
                    document.querySelector('.entry-content') ||
                    document.querySelector('main');
    const text = article ? article.innerText?.substring(0, 5000) : document.body?.innerText?.substring(0, 3000);
    const author = document.querySelector('[rel="author"]') ||
                   document.querySelector('.author') ||
                   document.querySelector('[itemprop="author"]') ||
                   document.querySelector('.byline');
    return {
        content: text?.trim() || null,
        title: document.querySelector('h1')?.innerText?.trim() || document.title || null,
        authorName: author?.innerText?.trim() || null
    };
})();
"""

# -- connection requests -----------------------------------------------------

CLICK_CONNECT = """
(function() {
    for (const btn of document.querySelectorAll('button')) {
        const label = (btn.getAttribute('aria-label') || '').toLowerCase();
        const text = (btn.innerText || '').trim().toLowerCase();
        if (label.includes('connect') || text === 'connect') { btn.click(); return 'clicked'; }
    }
    if (document.querySelector('button[aria-label*="Pending"]')) return 'pending';
    if (document.querySelector('button[aria-label*="Message"]')) return 'already_connected';
    return 'not_found';
})();
"""

ADD_NOTE = """
(function() {
    const btn = document.querySelector('button[aria-label*="Add a note"]') ||
                document.querySelector('.artdeco-modal button.artdeco-button--secondary');
    if (btn) { btn.click(); return 'add_note_clicked'; }
    return 'no_add_note_btn';
})();
"""

_TYPE_NOTE = """
(function() {
    const area = document.querySelector('#custom-message') ||
                 document.querySelector('textarea[name="message"]') ||
                 document.querySelector('.artdeco-modal textarea');
    if (!area) return 'not_found';
    area.focus();
    area.value = '__TEXT__';
    area.dispatchEvent(new Event('input', { bubbles: true }));
    area.dispatchEvent(new Event('change', { bubbles: true }));
    return 'typed';
})();
"""

SEND_CONNECTION = """
(function() {
    const btn = document.querySelector('.artdeco-modal button[aria-label*="Send"]') ||
                document.querySelector('button[aria-label*="Send"]') ||
                document.querySelector('.artdeco-modal button.artdeco-button--primary');
    if (btn && !btn.disabled) {
        const label = ((btn.getAttribute('aria-label') || '') + ' ' + (btn.innerText || '')).toLowerCase();
        if (label.includes('send')) { btn.click(); return 'sent'; }
    }
    return 'not_found';
})();
"""


def js_escape(text: str) -> str:
    """Escape text for embedding inside a single-quoted JS string literal."""
    return (
        (text or "")
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "")
    )


def type_message(text: str) -> str:
    return _TYPE_MESSAGE.replace("__TEXT__", js_escape(text))


def type_note(text: str) -> str:
    return _TYPE_NOTE.replace("__TEXT__", js_escape(text))
