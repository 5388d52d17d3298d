"""Tests for kubexporter/render.py"""

from kubexporter.model import GroupResource, Stats
from kubexporter.render import file_results_table, repair_table, stats_line, summary_table
from kubexporter.transform.encrypted import FileResult
from kubexporter.uor import RepairResult


def _resources():
    secret = GroupResource(api_version='v1', kind='Secret', namespaced=True,
                           instances=2, exported_instances=2, exported_size=2048)
    deploy = GroupResource(api_group='apps', api_version='v1', kind='Deployment', namespaced=True,
                           instances=3, exported_instances=1)
    return [secret, deploy]


class TestSummaryTable:
    """Test cases for the summary table"""

    def test_columns_without_errors(self):
        """Test the Error column is hidden when nothing failed"""
        text = summary_table(_resources())
        header = text.splitlines()[0]

        assert 'Error' not in header
        assert 'Size' not in header
        assert 'Pages' not in header
        assert text.splitlines()[-1].startswith('TOTAL')
        assert '3/5' in text.splitlines()[-1]

    def test_error_column(self):
        """Test failing kinds show their error"""
        resources = _resources()
        resources[1].record_error('Not Allowed')

        text = summary_table(resources)

        assert 'Error' in text.splitlines()[0]
        assert 'Not Allowed' in text

    def test_optional_columns_and_cumulated_total(self):
        """Test size and pages columns and the multi worker total label"""
        text = summary_table(_resources(), worker=4, with_size=True, with_pages=True)
        header = text.splitlines()[0]

        assert 'Size' in header and 'Pages' in header
        assert '2.0 KB' in text
        assert text.splitlines()[-1].startswith('CUMULATED TOTAL')


class TestReports:
    """Test cases for other reports"""

    def test_stats_line(self):
        """Test the statistics line"""
        stats = Stats(kinds=3, resources=10, errors=1)
        stats.add_namespace('a')
        stats.add_namespace('b')
        assert stats_line(stats) == 'Kinds: 3  Resources: 10  Namespaces: 2  Errors: 1'

    def test_file_results_table(self):
        """Test the batch report"""
        text = file_results_table([FileResult('s.yaml', 'ns', 'Secret', 's', 2)], 'Encrypted Fields')
        assert 'Encrypted Fields' in text.splitlines()[0]
        assert 's.yaml' in text

    def test_repair_table(self):
        """Test the repair report"""
        text = repair_table([RepairResult('a.yaml', 'ns', 'Pod', 'p', updated=1)])
        assert 'Unresolved' in text.splitlines()[0]
        assert 'a.yaml' in text
