"""
Unit tests for JobConfig
"""

import dataclasses
import os

import pytest

from jarcount.common.config import JobConfig, PER_TASK, parse_bool
from jarcount.common.errors import ConfigurationError


def from_properties(sample_input_file, temp_dir, skip_files=(), **properties):
    return JobConfig.from_properties(
        input_path=sample_input_file,
        output_path=os.path.join(temp_dir, 'output'),
        executable='/opt/tool',
        params=['p1', 'p2'],
        skip_files=skip_files,
        properties=properties,
    )


class TestFromProperties:

    def test_defaults(self, sample_input_file, temp_dir):
        config = from_properties(sample_input_file, temp_dir)

        assert config.case_sensitive is True
        assert config.use_combiner is True
        assert config.params == ('p1', 'p2')
        assert config.skip_patterns_enabled is False
        assert config.num_map_tasks == 1
        assert config.num_reduce_tasks == 1

    def test_case_sensitivity_property(self, sample_input_file, temp_dir):
        config = from_properties(sample_input_file, temp_dir, **{'wordcount.case.sensitive': 'FALSE'})

        assert config.case_sensitive is False

    def test_task_counts_and_policy(self, sample_input_file, temp_dir):
        config = from_properties(sample_input_file, temp_dir, **{
            'mapred.map.tasks': '4',
            'mapred.reduce.tasks': '3',
            'wordcount.invocation.policy': PER_TASK,
            'wordcount.program.dir': temp_dir,
        })

        assert config.num_map_tasks == 4
        assert config.num_reduce_tasks == 3
        assert config.invocation_policy == PER_TASK
        assert config.program_dir == temp_dir

    def test_skip_files_enable_filtering(self, sample_input_file, temp_dir):
        config = from_properties(sample_input_file, temp_dir, skip_files=['skip.txt'])

        assert config.skip_patterns_enabled is True

    def test_skip_property_false_disables_filtering(self, sample_input_file, temp_dir):
        config = from_properties(sample_input_file, temp_dir, skip_files=['skip.txt'],
                                 **{'wordcount.skip.patterns': 'false'})

        assert config.skip_patterns_enabled is False

    def test_unknown_property(self, sample_input_file, temp_dir):
        with pytest.raises(ConfigurationError, match='wordcount.colour'):
            from_properties(sample_input_file, temp_dir, **{'wordcount.colour': 'blue'})

    def test_bad_integer(self, sample_input_file, temp_dir):
        with pytest.raises(ConfigurationError):
            from_properties(sample_input_file, temp_dir, **{'mapred.map.tasks': 'many'})

    def test_bad_boolean(self):
        with pytest.raises(ConfigurationError):
            parse_bool('wordcount.case.sensitive', 'yes')

    def test_config_is_frozen(self, sample_input_file, temp_dir):
        config = from_properties(sample_input_file, temp_dir)

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.case_sensitive = False


class TestValidate:

    def test_valid_config(self, make_config):
        make_config().validate()

    def test_missing_input(self, make_config, temp_dir):
        with pytest.raises(ConfigurationError, match='Input file not found'):
            make_config(input_path=os.path.join(temp_dir, 'missing.txt')).validate()

    def test_existing_output_with_files(self, make_config, temp_dir):
        output = os.path.join(temp_dir, 'output')
        os.makedirs(output)
        with open(os.path.join(output, 'part-0.txt'), 'w') as f:
            f.write('old\t1\n')

        with pytest.raises(ConfigurationError, match='already exists'):
            make_config(output_path=output).validate()

    def test_existing_empty_output_is_allowed(self, make_config, temp_dir):
        output = os.path.join(temp_dir, 'output')
        os.makedirs(output)

        make_config(output_path=output).validate()

    @pytest.mark.parametrize('overrides', [
        {'executable': ''},
        {'num_map_tasks': 0},
        {'num_reduce_tasks': 0},
        {'max_workers': 0},
        {'invocation_policy': 'sometimes'},
    ])
    def test_rejects_bad_settings(self, make_config, overrides):
        with pytest.raises(ConfigurationError):
            make_config(**overrides).validate()
