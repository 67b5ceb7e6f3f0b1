"""
NEO Impact Estimator Web Application

This Flask-based web application exposes the impact estimator to map and form
front-ends. It owns one ParameterStore and one ImpactOrchestrator: clients
patch the current parameters, load fireball sample events, or reset, and read
back a snapshot that always carries the recomputed ground energy, TNT yield,
damage radii and risk level. A stateless endpoint evaluates arbitrary
snapshots without touching the shared store.
"""

import logging
import os

from flask import Flask, request, jsonify

from neoimpact.events import normalize_api_row, normalize_payload
from neoimpact.models import derive_body_from_energy
from neoimpact.results import ImpactOrchestrator, run_simulation_full
from neoimpact.state import ParameterStore
from neoimpact.translation_utils import get_available_languages, set_language

# Configure logging for request handling and store updates.
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(message)s')
logger = logging.getLogger(__name__)


def _json_object():
    """Return the request body as a dict, or None when it is not a JSON object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _bad_request(message):
    return jsonify({"error": message}), 400


def create_app(config=None):
    """
    Build the Flask application and its composition root.

    Args:
        config (dict, optional): Settings overriding the defaults
            (``LANGUAGE``, ``TESTING``, ...).

    Returns:
        Flask: The configured application. The store and orchestrator are
        reachable as ``app.extensions["neoimpact"]``.
    """
    app = Flask(__name__)
    app.config.from_mapping(LANGUAGE=os.environ.get("NEOIMPACT_LANGUAGE", "en"))
    if config:
        app.config.update(config)

    if app.config["LANGUAGE"] not in get_available_languages():
        logger.warning(f"Unsupported language {app.config['LANGUAGE']}; using English.")
        app.config["LANGUAGE"] = "en"
    set_language(app.config["LANGUAGE"])

    store = ParameterStore()
    orchestrator = ImpactOrchestrator(store)
    app.extensions["neoimpact"] = {"store": store, "orchestrator": orchestrator}

    @app.route('/state', methods=['GET'])
    def get_state():
        """Current parameter snapshot, outputs included."""
        return jsonify(dict(store.snapshot))

    @app.route('/parameters', methods=['POST'])
    def apply_parameters():
        """
        Applies a JSON patch of parameters to the shared store.

        Values are sanitized field by field (clamped or rejected), so an
        out-of-range velocity is stored at the nearest bound rather than
        refused.

        Returns:
            JSON: {"changed": bool, "state": snapshot}
        """
        patch = _json_object()
        if patch is None:
            return _bad_request("Expected a JSON object of parameters.")
        changed = store.apply(patch)
        return jsonify({"changed": changed, "state": dict(store.snapshot)})

    @app.route('/reset', methods=['POST'])
    def reset():
        store.reset()
        return jsonify(dict(store.snapshot))

    @app.route('/simulate', methods=['POST'])
    def simulate():
        """
        Evaluates a snapshot without modifying the shared store.

        Expected JSON Input:
            Any subset of the store fields (v_kms, elevation_angle, m_kg, d_m,
            impact_energy_kt, lat, lon, azimuth); missing fields take the
            defaults. An optional "language" selects the report language.

        Returns:
            JSON: {"results_text": str, "results_data": dict}
        """
        data = _json_object()
        if data is None:
            return _bad_request("Expected a JSON object describing the impact.")
        language = data.pop("language", None) or app.config["LANGUAGE"]
        results_text, results_data = run_simulation_full(data, language=language)
        return jsonify({"results_text": results_text, "results_data": results_data})

    @app.route('/derive', methods=['POST'])
    def derive():
        """Derives mass and diameter from a known impact energy and velocity."""
        data = _json_object()
        if data is None:
            return _bad_request("Expected a JSON object with impact_energy_kt and v_kms.")
        kwargs = {}
        if data.get("density") is not None:
            kwargs["density"] = data["density"]
        body = derive_body_from_energy(data.get("impact_energy_kt"), data.get("v_kms"), **kwargs)
        if body is None:
            return jsonify({"error": "Impact energy and velocity must be positive numbers."}), 422
        return jsonify({
            "mass_kg": body.mass_kg,
            "diameter_m": body.diameter_m,
            "density": body.density,
            "energy_j": body.energy_j,
        })

    @app.route('/events', methods=['POST'])
    def load_event():
        """
        Loads a fireball sample event into the shared store.

        Expected JSON Input (one of):
            {"row": [...]}: a positional fireball API row.
            {"payload": ...}: a sample payload (list of events or a
                fields/data table); one row is picked at random.
            {...}: an already normalized event.
        """
        data = _json_object()
        if data is None:
            return _bad_request("Expected a JSON object describing a sample event.")
        try:
            if "row" in data:
                if not isinstance(data["row"], list):
                    return _bad_request("'row' must be a list.")
                event = normalize_api_row(data["row"])
            elif "payload" in data:
                event = normalize_payload(data["payload"])
            else:
                event = data
        except ValueError as e:
            return _bad_request(str(e))
        snapshot = orchestrator.load_event(event)
        return jsonify(dict(snapshot))

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=5000, debug=False)
