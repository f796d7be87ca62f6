# tests/test_insights.py - Tests for insight synthesis
"""
Unit tests for the InsightSynthesizer rules.
"""

import pytest
from load_diagnostics.analyzer.frequency_analyzer import FrequencyAnalyzer, IntervalStatistics
from load_diagnostics.analyzer.insight_synthesizer import Insight, InsightSynthesizer, Priority, top_insights
from load_diagnostics.analyzer.phase_analyzer import PhaseDurationStatistics, PhaseStatistics
from load_diagnostics.analyzer.results import TableFrequencyProfile


def make_phase(phase, percentage, slow_count=0):
    return PhaseStatistics(
        phase=phase,
        avg_duration=percentage,
        min_duration=0.0,
        max_duration=percentage,
        stddev=0.0,
        percentage_of_total=percentage,
        slow_count=slow_count,
        slow_threshold=percentage * 3,
    )


def make_phase_stats(write_pct, publish_pct, write_slow=0, publish_slow=0, total_slow=0):
    return PhaseDurationStatistics(
        analyzed_loads=10,
        excluded_loads=0,
        write=make_phase('write', write_pct, write_slow),
        publish=make_phase('publish', publish_pct, publish_slow),
        total=make_phase('total', 100.0, total_slow),
    )


def make_profile(key, mean, cv, success=100.0, total=10):
    stats = IntervalStatistics(count=total - 1, mean=mean, stddev=mean * (cv or 0) / 100,
                               min=mean, max=mean, cv_percent=cv)
    return TableFrequencyProfile(
        entity_key=key,
        total_loads=total,
        success_loads=int(total * success / 100),
        failed_loads=total - int(total * success / 100),
        success_rate=success,
        interval_stats=stats,
        classification=FrequencyAnalyzer().classify(stats),
        first_load='2024-01-01T00:00:00',
        last_load='2024-01-01T01:00:00',
        span_hours=1.0,
    )


def types(insights):
    return [insight.type for insight in insights]


class TestPhaseInsights:
    """Test cases for phase rules"""

    def test_write_bottleneck(self):
        """Test a dominant write phase"""
        insights = InsightSynthesizer().phase_insights(make_phase_stats(80.0, 20.0))

        assert types(insights) == ['phase_bottleneck']
        assert insights[0].phase == 'write'
        assert insights[0].priority is Priority.HIGH

    def test_publish_bottleneck(self):
        """Test a dominant publish phase"""
        insights = InsightSynthesizer().phase_insights(make_phase_stats(40.0, 60.0))

        assert types(insights) == ['phase_bottleneck']
        assert insights[0].phase == 'publish'

    def test_boundaries_are_exclusive(self):
        """Test exactly 70% write and 50% publish do not trigger"""
        insights = InsightSynthesizer().phase_insights(make_phase_stats(70.0, 50.0))
        assert 'phase_bottleneck' not in types(insights)
        assert 'phase_balanced' not in types(insights)

    def test_balanced(self):
        """Test an even split"""
        insights = InsightSynthesizer().phase_insights(make_phase_stats(60.0, 40.0))

        assert types(insights) == ['phase_balanced']
        assert insights[0].priority is Priority.INFO

    def test_slow_tasks_per_phase(self):
        """Test one slow task insight per affected phase"""
        insights = InsightSynthesizer().phase_insights(make_phase_stats(60.0, 40.0, write_slow=1, total_slow=2))

        slow = [i for i in insights if i.type == 'phase_slow_tasks']
        assert [i.phase for i in slow] == ['write', 'total']
        assert all(i.priority is Priority.HIGH for i in slow)
        assert slow[0].recommendations


class TestTableInsights:
    """Test cases for the full rule sequence"""

    def test_rule_order(self):
        """Test phase, frequency and reliability insights come in that order"""
        metrics = FrequencyAnalyzer().calculate_frequency_metrics(10, 0)
        insights = InsightSynthesizer().synthesize(
            {'success_rate': 90.0}, metrics, make_phase_stats(80.0, 20.0)
        )

        assert types(insights) == ['phase_bottleneck', 'extreme_frequency', 'reliability_concern']
        assert [i.priority for i in insights] == [Priority.HIGH, Priority.HIGH, Priority.MEDIUM]

    def test_perfect_reliability(self):
        """Test a 100% success rate"""
        insights = InsightSynthesizer().reliability_insights(100.0)
        assert types(insights) == ['reliability_perfect']

    @pytest.mark.parametrize('rate, expected', [
        (95.0, []),
        (94.9, ['reliability_concern']),
        (99.9, []),
        (0.0, ['reliability_concern']),
    ])
    def test_reliability_threshold(self, rate, expected):
        """Test the 95% threshold is exclusive"""
        assert types(InsightSynthesizer().reliability_insights(rate)) == expected

    def test_missing_inputs(self):
        """Test missing phase and frequency statistics produce no insights for them"""
        insights = InsightSynthesizer().synthesize({'success_rate': 97.0}, None, None)
        assert insights == []

    def test_moderate_frequency_has_no_insight(self):
        """Test only the extreme level triggers a frequency insight"""
        metrics = FrequencyAnalyzer().calculate_frequency_metrics(10, 540)
        assert InsightSynthesizer().frequency_insights(metrics) == []


class TestTopInsights:
    """Test cases for top_insights"""

    def test_priority_order_is_stable(self):
        """Test sorting by priority keeps generation order for ties"""
        insights = [
            Insight('a', Priority.INFO, 'a', ()),
            Insight('b', Priority.HIGH, 'b', ()),
            Insight('c', Priority.MEDIUM, 'c', ()),
            Insight('d', Priority.HIGH, 'd', ()),
        ]

        assert types(top_insights(insights, 3)) == ['b', 'd', 'c']
        assert top_insights(insights, 0) == []


class TestOverviewInsights:
    """Test cases for multi-table rules"""

    def test_no_profiles(self):
        """Test the no-data insight"""
        insights = InsightSynthesizer().overview_insights([])
        assert types(insights) == ['no_data']

    def test_overview_rules(self):
        """Test frequency, regularity, reliability and load rules"""
        profiles = [
            make_profile('db.fast', 2.0, 10.0),
            make_profile('db.noisy', 600.0, 80.0, success=80.0),
            make_profile('db.slow', 7200.0, 5.0),
        ]

        insights = InsightSynthesizer().overview_insights(profiles)

        assert types(insights) == [
            'high_frequency_import',
            'irregular_import_pattern',
            'low_success_rate',
            'high_system_load',
            'most_active_tables',
        ]
        by_type = {i.type: i for i in insights}
        assert by_type['high_frequency_import'].details['tables'][0]['table'] == 'db.fast'
        assert by_type['irregular_import_pattern'].details['tables'][0]['table'] == 'db.noisy'
        assert by_type['high_system_load'].priority is Priority.HIGH
        assert len(by_type['most_active_tables'].details['tables']) == 3

    def test_quiet_overview(self):
        """Test calm tables only get the activity ranking"""
        profiles = [make_profile('db.hourly', 3600.0, 5.0)]
        assert types(InsightSynthesizer().overview_insights(profiles)) == ['most_active_tables']
