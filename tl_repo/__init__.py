#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translation Repository Package
Keeps the localized data directory in sync with a remote translation repository
"""

from .collaborators import LocalizedDataHost, LoggingNotifier, Notifier, NullLocalizedDataHost
from .index_client import IndexClient
from .meta_index import RepoInfo, fetch_meta_index
from .models import RepoCache, RepoFile, RepoIndex, Strategy, TransferOutcome, UpdatePlan
from .planner import StrategyTuning, decide_strategy, plan_update
from .settings import TranslationSettings
from .updater import Updater, UpdaterState

__all__ = [
    'LocalizedDataHost',
    'LoggingNotifier',
    'Notifier',
    'NullLocalizedDataHost',
    'IndexClient',
    'RepoInfo',
    'fetch_meta_index',
    'RepoCache',
    'RepoFile',
    'RepoIndex',
    'Strategy',
    'TransferOutcome',
    'UpdatePlan',
    'StrategyTuning',
    'decide_strategy',
    'plan_update',
    'TranslationSettings',
    'Updater',
    'UpdaterState',
]
