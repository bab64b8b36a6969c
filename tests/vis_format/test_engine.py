"""
Tests for the formatting engine
"""

import logging

import pandas as pd
import pytest
from src.vis_format import EngineContext, FormattingEngine, unescape_braces


class TestFormatBinding:
    """Test end-to-end template formatting."""

    @pytest.mark.parametrize('template, expected', [
        ('Temp: {hm-rpc.0.temp;round(1)} °C', 'Temp: 21.5 °C'),
        ('{hm-rpc.0.temp.ts;date(DD.MM.YYYY hh:mm)}', '24.12.2023 18:30'),
        ('{hm-rpc.0.uptime;date(hh:mm:ss)}', '01:02:05'),
        ('{hm-rpc.0.level;hex2}', '03'),
        ('{hm-rpc.0.limit;*(1,5)}', '30'),
        ('{hm-rpc.0.config;json(mode.name)}', 'eco'),
        ("{a:hm-rpc.0.temp;b:hm-rpc.0.limit;a > b ? 'warm' : 'cold'}", 'warm'),
        ('{a:hm-rpc.0.temp;Math.round(a)} / {hm-rpc.0.limit}', '21 / 20'),
        ('{nope}', 'undefined'),
        ('plain text', 'plain text'),
        ('', ''),
    ])
    def test_templates(self, engine, template, expected):
        text = engine.format_binding(template)

        assert text == expected, f"\nExpected:\n{expected}\n\nGot:\n{text}"

    def test_escaped_braces(self, engine):
        assert engine.format_binding('{{literal}}') == '{literal}'

    def test_repeated_token(self, engine):
        assert engine.format_binding('{hm-rpc.0.limit}-{hm-rpc.0.limit}') == '20-20'

    def test_special_values(self, engine, widget_data):
        text = engine.format_binding(
            '{username}|{login}|{instance}|{language}|{view}|{wid}|{wname}',
            view='main',
            wid='w00001',
            widget_data=widget_data
        )

        assert text == 'admin|true|42|en|main|w00001|Living room'

    def test_widget_name_falls_back_to_id(self, engine):
        assert engine.format_binding('{wname}', wid='w00001') == 'w00001'

    def test_values_take_precedence(self, engine):
        text = engine.format_binding('{hm-rpc.0.limit} {hm-rpc.0.level}', values={'hm-rpc.0.limit.val': 25})

        assert text == '25 3'

    def test_widget_formula(self, engine, widget, widget_data):
        text = engine.format_binding(
            '{v:widgetOid.limit;widget.data.name + ": " + v}',
            widget=widget,
            widget_data=widget_data
        )

        assert text == 'Living room: 20'

    @pytest.mark.parametrize('template, expected', [
        ('{a:s;a * 2}', '10'),
        ('{a:s;a - 1}', '4'),
        ('{a:s;a > 3 ? "hi" : "lo"}', 'hi'),
        ('{a:s;a + 1}', '51'),
    ])
    def test_string_state_in_formula(self, engine, template, expected):
        assert engine.format_binding(template, values={'s.val': '5'}) == expected

    def test_large_value_keeps_fixed_decimals(self, engine):
        text = engine.format_binding('{b;round(2)}', values={'b.val': 1e27})

        assert text == '1000000000000000000000000000.00'

    def test_unknown_operator(self, engine, caplog):
        with caplog.at_level(logging.WARNING):
            text = engine.format_binding('{hm-rpc.0.state;foo}')

        assert text == 'abc'
        assert 'Unknown operator: {hm-rpc.0.state;foo}' in caplog.text

    def test_formula_error_renders_zero(self, engine, caplog):
        with caplog.at_level(logging.ERROR):
            text = engine.format_binding('Result: {a:hm-rpc.0.temp;a +}')

        assert text == 'Result: 0'
        assert 'Error in eval[error]' in caplog.text

    def test_moment_date_parameter_error(self, engine):
        assert engine.format_binding('{hm-rpc.0.temp.ts;momentDate(a,b,c)}') == 'error'

    def test_parser_failure_is_contained(self, utc_context, caplog):
        def broken_parser(template):
            raise RuntimeError('boom')

        engine = FormattingEngine(utc_context, parser=broken_parser)
        with caplog.at_level(logging.ERROR):
            text = engine.format_binding('{{x}} {y}')

        assert text == '{x} {y}'
        assert 'boom' in caplog.text


class TestBindingCache:
    """Test memoization of parsed bindings."""

    def test_template_is_parsed_once(self, utc_context, sample_states, counting_parser):
        engine = FormattingEngine(utc_context, states=sample_states, parser=counting_parser)

        first = engine.format_binding('{hm-rpc.0.temp;round(1)}')
        second = engine.format_binding('{hm-rpc.0.temp;round(1)}')

        assert first == second == '21.5'
        assert counting_parser.calls == 1
        assert len(engine.bindings_cache) == 1

    def test_edit_mode_bypasses_cache(self, utc_context, sample_states, counting_parser):
        utc_context.edit_mode = True
        engine = FormattingEngine(utc_context, states=sample_states, parser=counting_parser)

        engine.format_binding('{hm-rpc.0.temp}')
        engine.format_binding('{hm-rpc.0.temp}')

        assert counting_parser.calls == 2
        assert len(engine.bindings_cache) == 0

    def test_edit_mode_toggle_takes_effect(self, utc_context, sample_states, counting_parser):
        engine = FormattingEngine(utc_context, states=sample_states, parser=counting_parser)
        engine.format_binding('{hm-rpc.0.temp}')

        utc_context.edit_mode = True
        engine.format_binding('{hm-rpc.0.temp}')

        assert counting_parser.calls == 2

    def test_templates_without_bindings_are_not_cached(self, utc_context, counting_parser):
        engine = FormattingEngine(utc_context, parser=counting_parser)

        engine.format_binding('plain text')
        engine.format_binding('plain text')

        assert counting_parser.calls == 2
        assert 'plain text' not in engine.bindings_cache

    def test_cached_bindings_are_copies(self, engine):
        template = '{hm-rpc.0.temp;round(1)}'
        bindings = engine.extract_binding(template)
        bindings[0].operations.clear()

        assert engine.extract_binding(template)[0].operations != []
        assert engine.format_binding(template) == '21.5'

    def test_clear_cache(self, engine):
        engine.format_binding('{hm-rpc.0.temp}')
        engine.clear_cache()

        assert len(engine.bindings_cache) == 0


class TestFormatFrame:
    """Test formatting over a frame of state snapshots."""

    def test_rows(self, utc_context, state_snapshots):
        engine = FormattingEngine(utc_context)

        result = engine.format_frame('{hm-rpc.0.temp} / {hm-rpc.0.limit}', state_snapshots)

        assert result.tolist() == ['20.04 / 21', 'undefined / 21', '22 / 21']
        assert result.index.tolist() == [0, 6, 12]

    def test_empty_frame(self, engine):
        result = engine.format_frame('{hm-rpc.0.temp}', pd.DataFrame(columns=['hm-rpc.0.temp.val']))

        assert result.empty


class TestEngineContext:
    """Test configuration loading."""

    def test_from_config(self):
        context = EngineContext.from_config({
            'user': 'bob',
            'language': 'de',
            'date_format': '',
            'translate_func_path': 'string.capwords',
        })

        assert context.user == 'bob'
        assert context.language == 'de'
        assert context.date_format == 'DD.MM.YYYY'
        assert context.translate('heute') == 'Heute'

    def test_unknown_keys(self):
        with pytest.raises(ValueError, match='colour'):
            EngineContext.from_config({'colour': 'red'})

    def test_from_yaml(self, tmp_path):
        config_file = tmp_path / 'engine.yaml'
        config_file.write_text('engine:\n  user: bob\n  timezone: UTC\n  formula_max_steps: 50\n')

        context = EngineContext.from_yaml(str(config_file))

        assert context.user == 'bob'
        assert context.timezone == 'UTC'
        assert context.formula_max_steps == 50

    def test_translation_reaches_moment_dates(self, sample_states, fixed_clock):
        context = EngineContext(
            language='de',
            timezone='UTC',
            translate=lambda text: {'Today': 'Heute'}.get(text, text)
        )
        engine = FormattingEngine(context, states=sample_states)
        engine.moment_date_formatter.clock = fixed_clock

        assert engine.format_binding('{hm-rpc.0.temp.ts;momentDate(dddd HH:mm,true)}') == 'Heute 18:30'


def test_unescape_braces():
    assert unescape_braces('{{a}} {b}') == '{a} {b}'
