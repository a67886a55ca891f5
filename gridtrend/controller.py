import io
import json
import logging

from flask import Flask, request, send_file
from flask_cors import CORS

import gridtrend.controller_utility as controller_util
import gridtrend.validator as validator
from gridtrend.constants import DEFAULT_VALUE_COLUMN_KEY
from gridtrend.data_loader import DataLoader
from gridtrend.ingest import export_csv, sample_csv
from gridtrend.kpis import KPIReporter

app = Flask(__name__)

cors = CORS(app, resources={r"/*": {"origins": "*"}})

DEFAULT_CONFIG = {'setup': {'value_column_key': DEFAULT_VALUE_COLUMN_KEY}}
QUERY_OVERRIDE_ARGS = ('frequency', 'from', 'to', 'range_days')


def json_response(payload, status=200):
    return app.response_class(
        response=json.dumps(payload, indent=4, cls=controller_util.Encoder),
        status=status,
        mimetype='application/json'
    )


def error_response(description, status, errors=None):
    payload = {"description": description}
    if errors is not None:
        payload["errors"] = errors
    return json_response(payload, status)


@app.route('/get-growth-metrics', methods=['POST'])
def get_growth_metrics():
    """
    A flask endpoint, build the growth report for a given data csv and optional config yaml file.
    :return: A json response for the frontend to render the data
    """
    if 'csvfile' not in request.files:
        return error_response("No CSV file provided, upload one as 'csvfile'", 400)
    csv_data_file = request.files['csvfile']

    try:
        cfg = controller_util.load_yaml_from_stream(request.files['configfile']) \
            if 'configfile' in request.files else DEFAULT_CONFIG
    except Exception as e:
        return error_response(e.__str__(), 500)

    overrides = {arg: request.args.get(arg) for arg in QUERY_OVERRIDE_ARGS if arg in request.args}
    try:
        controller_util.check_query_overrides(overrides)
    except ValueError as e:
        return error_response(e.__str__(), 400)

    try:
        loader = process_input(csv_data_file, cfg)
        if loader.ingest_result.is_empty:
            return error_response(loader.status, 422, loader.ingest_result.error_messages)
        deck = controller_util.get_growth_deck(cfg, loader.store, loader.ingest_result, overrides)
    except Exception as e:
        logging.error(e, exc_info=True)
        return error_response(e.__str__(), 500)

    return json_response(deck)


@app.route('/get-kpis', methods=['POST'])
def get_kpis():
    """
    A flask endpoint, computes the headline KPIs for a given data csv.
    :return: A json response with the rounded KPI snapshot
    """
    if 'csvfile' not in request.files:
        return error_response("No CSV file provided, upload one as 'csvfile'", 400)

    try:
        loader = process_input(request.files['csvfile'], DEFAULT_CONFIG)
        if loader.ingest_result.is_empty:
            return error_response(loader.status, 422, loader.ingest_result.error_messages)
        kpis = KPIReporter(loader.store).compute()
    except Exception as e:
        logging.error(e, exc_info=True)
        return error_response(e.__str__(), 500)

    return json_response({"kpis": controller_util.present_kpis(kpis),
                          "status": loader.status,
                          "errors": loader.ingest_result.error_messages})


@app.route('/export-csv', methods=['POST'])
def export_normalized_csv():
    """
    Re-exports an uploaded CSV as normalized ``DD-MM-YYYY,value`` rows sorted by date.

    Returns:
        The normalized CSV file as an attachment.
    """
    if 'csvfile' not in request.files:
        return error_response("No CSV file provided, upload one as 'csvfile'", 400)
    value_column_key = request.args.get('value_column_key', DEFAULT_VALUE_COLUMN_KEY)
    cfg = {'setup': {'value_column_key': value_column_key}}

    try:
        loader = process_input(request.files['csvfile'], cfg)
    except Exception as e:
        logging.error(e, exc_info=True)
        return error_response(e.__str__(), 500)
    if loader.ingest_result.is_empty:
        return error_response(loader.status, 422, loader.ingest_result.error_messages)

    content = export_csv(loader.store, value_column_key)
    return send_file(io.BytesIO(content.encode('utf-8')), mimetype='text/csv', as_attachment=True,
                     download_name=f"{value_column_key}_export.csv")


@app.route('/sample-csv', methods=['GET'])
def download_sample_csv():
    value_column_key = request.args.get('value_column_key', DEFAULT_VALUE_COLUMN_KEY)
    content = sample_csv(value_column_key)
    return send_file(io.BytesIO(content.encode('utf-8')), mimetype='text/csv', as_attachment=True,
                     download_name=f"{value_column_key}_sample.csv")


def process_input(data, cfg):
    try:
        config_validator = validator.GridTrendValidator(cfg)
        config_validator.validate_yaml()
    except Exception as e:
        logging.error("Yaml validation failed", exc_info=True)
        raise Exception(f"Invalid configuration provided: {e.__str__()}")

    try:
        return DataLoader(cfg, csv_data=data)
    except Exception as error:
        logging.error(error, exc_info=True)
        raise Exception(f"Could not load CSV data due to: {error.__str__()}")


def start():
    return app


if __name__ == "__main__":
    app.run(debug=False, port=5001, host='0.0.0.0')
