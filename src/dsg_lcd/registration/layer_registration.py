"""Robust registration of two sets of nodes from a scene graph layer.

Registration runs in two phases:
1. Snapshot: with the layer locks held, build putative correspondences
   and copy the node positions into two (3, N) matrices whose column i
   belongs to correspondence i.
2. Solve: with the locks released, run the robust solver on the matrices
   and map its inlier indices back to node pairs.

The solve can take from milliseconds to seconds, so it never runs while
graph updates are blocked.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import numpy as np

from ..pose import SE3
from ..scene_graph import SceneGraphLayer
from .config import LayerRegistrationConfig
from .correspondences import (
    Correspondence,
    CorrespondenceFunc,
    find_correspondences,
    pairwise_match,
    semantic_match,
)
from .problem import LayerRegistrationProblem, LayerRegistrationSolution, Mutex
from .teaser import RobustRegistrationSolver, RobustSolution

logger = logging.getLogger(__name__)

_problem_counter = itertools.count()


class InlierIndexError(IndexError):
    """The solver reported an inlier index outside the correspondence list.

    This breaks the contract between registration and the solver and is not
    meant to be caught: continuing would attach the wrong node pairs to the
    transform. Callers must let it terminate the process; worker pools
    should re-raise it on the main thread (e.g. through ``Future.result()``)
    rather than log and drop it, and catch-all handlers must exclude it.
    """


@contextmanager
def _hold_locks(*mutexes: Mutex | None) -> Iterator[None]:
    """Acquire the given locks in order, skipping None and repeats."""
    held: list[Mutex] = []
    try:
        for mutex in mutexes:
            if mutex is None or any(mutex is other for other in held):
                continue
            mutex.acquire()
            held.append(mutex)
        yield
    finally:
        for mutex in reversed(held):
            mutex.release()


def build_point_matrices(
    src_layer: SceneGraphLayer,
    dest_layer: SceneGraphLayer,
    correspondences: list[Correspondence],
) -> tuple[np.ndarray, np.ndarray]:
    """Stack correspondence positions into (3, N) source and destination matrices.

    Column i of both matrices holds the positions of ``correspondences[i]``.
    """
    n = len(correspondences)
    src_points = np.zeros((3, n), dtype=np.float64)
    dest_points = np.zeros((3, n), dtype=np.float64)
    for i, (src_id, dest_id) in enumerate(correspondences):
        src_points[:, i] = src_layer.get_position(src_id)
        dest_points[:, i] = dest_layer.get_position(dest_id)
    return src_points, dest_points


def register_layer(
    config: LayerRegistrationConfig,
    solver: RobustRegistrationSolver,
    problem: LayerRegistrationProblem,
    src: SceneGraphLayer,
    correspondence_func: CorrespondenceFunc,
) -> LayerRegistrationSolution:
    """Register the problem's source nodes against its destination nodes.

    Args:
        config: Layer registration policy (problem logging)
        solver: Robust solver; reset before use, must not be shared
            with another thread during the call
        problem: Node sets, locks, and thresholds
        src: Layer of the source nodes (and of the destination nodes when
            ``problem.dest_layer`` is None)
        correspondence_func: Predicate selecting putative correspondences

    Returns:
        Valid solution, or the default invalid solution when there are too
        few correspondences, the solver fails, or there are too few inliers

    Raises:
        InlierIndexError: if the solver reports an out-of-range inlier index;
            fatal, must not be caught and recovered from
    """
    dest = problem.dest_layer if problem.dest_layer is not None else src

    with _hold_locks(problem.src_mutex, problem.dest_mutex):
        correspondences = find_correspondences(
            src, dest, problem.src_nodes, problem.dest_nodes, correspondence_func
        )
        src_points, dest_points = build_point_matrices(src, dest, correspondences)

    if not correspondences or len(correspondences) < problem.min_correspondences:
        logger.debug(
            "[DSG LCD] Not enough correspondences for registration at layer %s: %d / %d",
            src.id,
            len(correspondences),
            problem.min_correspondences,
        )
        return LayerRegistrationSolution()

    logger.debug("[DSG LCD] Source:\n%s", src_points)
    logger.debug("[DSG LCD] Dest:\n%s", dest_points)
    logger.info(
        "[DSG LCD] Registering layer %s with %d correspondences out of %d source "
        "and %d destination nodes",
        src.id,
        len(correspondences),
        len(problem.src_nodes),
        len(problem.dest_nodes),
    )

    solver.reset(solver.getParams())
    solver.solve(src_points, dest_points)
    result = solver.getSolution()
    inliers = list(solver.getInlierMaxClique()) if result.valid else []

    if config.log_registration_problem:
        try:
            save_registration_problem(
                config.registration_output_path,
                layer_id=src.id,
                problem=problem,
                correspondences=correspondences,
                src_points=src_points,
                dest_points=dest_points,
                result=result,
                inliers=inliers,
            )
        except OSError as e:
            logger.warning("[DSG LCD] Failed to save registration problem: %s", e)

    if not result.valid:
        logger.debug("[DSG LCD] Solver rejected registration at layer %s", src.id)
        return LayerRegistrationSolution()

    if len(inliers) < problem.min_inliers:
        logger.debug(
            "[DSG LCD] Not enough inliers for registration at layer %s: %d / %d",
            src.id,
            len(inliers),
            problem.min_inliers,
        )
        return LayerRegistrationSolution()

    valid_correspondences: list[Correspondence] = []
    for index in inliers:
        index = int(index)
        if not 0 <= index < len(correspondences):
            logger.critical(
                "[DSG LCD] Solver returned inlier index %d for %d correspondences",
                index,
                len(correspondences),
            )
            raise InlierIndexError(
                f"Inlier index {index} out of range for {len(correspondences)} "
                "correspondences"
            )
        valid_correspondences.append(correspondences[index])

    dest_T_src = SE3.from_Rt(result.rotation, result.translation)
    logger.info(
        "[DSG LCD] Registered layer %s: %d inliers, %s",
        src.id,
        len(valid_correspondences),
        dest_T_src,
    )
    return LayerRegistrationSolution(
        valid=True, dest_T_src=dest_T_src, inliers=valid_correspondences
    )


def register_layer_pairwise(
    config: LayerRegistrationConfig,
    solver: RobustRegistrationSolver,
    problem: LayerRegistrationProblem,
    src: SceneGraphLayer,
) -> LayerRegistrationSolution:
    """Register with every node pair as a putative correspondence."""
    return register_layer(config, solver, problem, src, pairwise_match)


def register_layer_semantic(
    config: LayerRegistrationConfig,
    solver: RobustRegistrationSolver,
    problem: LayerRegistrationProblem,
    src: SceneGraphLayer,
) -> LayerRegistrationSolution:
    """Register with only same-label node pairs as putative correspondences."""
    return register_layer(config, solver, problem, src, semantic_match)


def save_registration_problem(
    output_path: str | Path,
    layer_id: int,
    problem: LayerRegistrationProblem,
    correspondences: list[Correspondence],
    src_points: np.ndarray,
    dest_points: np.ndarray,
    result: RobustSolution,
    inliers: list[int],
) -> Path:
    """Write a registration problem and its raw solver output to a .npz file.

    Args:
        output_path: Directory for the file (created if needed)
        layer_id: Layer being registered
        problem: Registration problem
        correspondences: Correspondence list matching the point columns
        src_points: (3, N) source points
        dest_points: (3, N) destination points
        result: Solver solution (valid, rotation, translation)
        inliers: Solver inlier indices

    Returns:
        Path of the written file
    """
    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / (
        f"layer{layer_id}_{time.time_ns()}_{next(_problem_counter):06d}.npz"
    )

    np.savez(
        path,
        layer_id=layer_id,
        src_nodes=np.array(list(problem.src_nodes), dtype=np.uint64),
        dest_nodes=np.array(list(problem.dest_nodes), dtype=np.uint64),
        correspondences=np.array(correspondences, dtype=np.uint64).reshape(-1, 2),
        src_points=src_points,
        dest_points=dest_points,
        valid=bool(result.valid),
        rotation=np.asarray(result.rotation, dtype=np.float64).reshape(3, 3),
        translation=np.asarray(result.translation, dtype=np.float64).reshape(3),
        inliers=np.array(inliers, dtype=np.int64),
    )
    logger.debug("[DSG LCD] Saved registration problem to %s", path)
    return path
