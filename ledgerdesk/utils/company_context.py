"""
Company Context Utilities for Multi-Company Support

This module provides the company context object that decides which company
is active for a user, plus helpers for attaching it to a request and
guarding views that need an active company.
"""

import logging
from functools import wraps
from flask import g, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from ledgerdesk.models import db, Company, UserPreference
from ledgerdesk.utils.notifications import notify_error

logger = logging.getLogger(__name__)

NO_COMPANY_MESSAGE = 'Please select a company first'


class CompanyContext:
    """
    Holds a user's companies and the one currently active.

    Build one per session (in the web app, per request) and hand it to every
    handler that needs to know which company is in scope. Only
    select_company() and refresh() change the active company.
    """

    def __init__(self, user=None, notifier=notify_error):
        self.user = user
        self.notifier = notifier
        self.companies = []
        self.selected_company = None
        self.loading = True
        # Bumped on every change of active company; aggregation passes
        # started under an older value are discarded.
        self.generation = 0

    @property
    def user_id(self):
        return self.user.id if self.user is not None else None

    @property
    def selected_company_id(self):
        return self.selected_company.id if self.selected_company is not None else None

    @property
    def has_company(self):
        return self.selected_company is not None

    def initialize(self):
        """
        Load the user's companies (newest first) and resolve the active one.

        Resolution order: the company stored in the user's preference if it is
        still among the loaded companies, otherwise the most recently created
        company, otherwise none. Loading always finishes, even when the store
        cannot be reached.
        """
        self.loading = True
        previous_id = self.selected_company_id

        if self.user is None:
            self.companies = []
            self.selected_company = None
            self.loading = False
            return self

        try:
            companies = Company.query.filter_by(user_id=self.user_id).order_by(
                Company.created_at.desc(), Company.id.desc()
            ).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error loading companies', e)
            self.loading = False
            return self

        self.companies = companies

        preferred_id = None
        try:
            preference = UserPreference.query.filter_by(user_id=self.user_id).first()
            if preference is not None:
                preferred_id = preference.selected_company_id
        except SQLAlchemyError as e:
            # A missing preference only costs the remembered choice
            db.session.rollback()
            logger.warning(f"Could not load company preference for user {self.user_id}: {e}")

        self.selected_company = self._resolve(preferred_id)
        if self.selected_company_id != previous_id:
            self.generation += 1
        self.loading = False
        return self

    def _resolve(self, preferred_id):
        if preferred_id is not None:
            company = self.find(preferred_id)
            if company is not None:
                return company
        if self.companies:
            return self.companies[0]
        return None

    def find(self, company_id):
        """Return the loaded company with this id, or None"""
        for company in self.companies:
            if company.id == company_id or str(company.id) == str(company_id):
                return company
        return None

    def select_company(self, company_id):
        """
        Make a loaded company the active one and remember the choice.

        Returns False and leaves the state untouched when the id is not among
        the loaded companies. The in-memory selection is kept even if the
        preference cannot be saved.
        """
        company = self.find(company_id)
        if company is None:
            return False

        self.selected_company = company
        self.generation += 1

        if self.user is not None:
            self._save_preference(company.id)
        return True

    def _save_preference(self, company_id):
        try:
            preference = UserPreference.query.filter_by(user_id=self.user_id).first()
            if preference is None:
                preference = UserPreference(user_id=self.user_id)
                db.session.add(preference)
            preference.selected_company_id = company_id
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Could not save company preference for user {self.user_id}: {e}")
            return False
        return True

    def refresh(self):
        """Reload companies after one was created, edited or deleted"""
        return self.initialize()

    def to_dict(self):
        return {
            'companies': [c.to_dict() for c in self.companies],
            'selected_company': self.selected_company.to_dict() if self.selected_company else None,
            'loading': self.loading,
        }


def set_company_context():
    """
    Set company context in Flask's g object.
    Call this in before_request to make the active company available throughout the request.
    """
    if current_user.is_authenticated:
        g.company_context = CompanyContext(current_user._get_current_object()).initialize()
    else:
        g.company_context = CompanyContext().initialize()


def get_company_context():
    """Return the request's company context, building it on first use"""
    context = getattr(g, 'company_context', None)
    if context is None:
        set_company_context()
        context = g.company_context
    return context


def company_required(f):
    """
    Decorator for views that work on the active company.

    Having no company is a normal state: reads answer with an empty payload
    and a prompt, writes are refused with 400.

    Usage:
        @company_required
        def my_view(context):
            # context.selected_company is guaranteed to be set
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context = get_company_context()
        if not context.has_company:
            if request.method in ('GET', 'HEAD'):
                return jsonify({
                    'company': None,
                    'message': NO_COMPANY_MESSAGE,
                    'items': [],
                })
            return jsonify({'error': NO_COMPANY_MESSAGE}), 400
        return f(context, *args, **kwargs)
    return decorated_function
